#!/usr/bin/env python3
"""
Inspect or reset the persisted wizard state of an integration.

Usage:
    python cli/wizard_state.py show <integration-id> --token <admin-token>
    python cli/wizard_state.py reset <integration-id> --token <admin-token>
"""

import asyncio
import json
import sys
from typing import Any

import httpx
import structlog

logger = structlog.get_logger()


async def call_state_endpoint(
    action: str,
    integration_id: str,
    admin_token: str,
    api_url: str = "http://localhost:8000/api/v1",
) -> dict[str, Any]:
    """Fetch or reset the wizard state through the operator API.

    Args:
        action: "show" or "reset"
        integration_id: Integration instance id
        admin_token: Operator bearer token
        api_url: Wizard service API URL

    Returns:
        The state as reported by the service
    """
    method = "GET" if action == "show" else "DELETE"
    url = f"{api_url}/integrations/{integration_id}/wizard/state"

    async with httpx.AsyncClient(timeout=30.0) as client:
        logger.info("wizard_state_request", action=action, integration_id=integration_id)
        response = await client.request(
            method,
            url,
            headers={"Authorization": f"Bearer {admin_token}"},
        )
        response.raise_for_status()
        return response.json()


def summarize(state: dict[str, Any]) -> list[str]:
    """Human-readable lines describing wizard progress."""
    steps = [
        ("Access token", state.get("access_token")),
        ("Business account", state.get("business_account_id")),
        ("Phone number", state.get("phone_number_id")),
        ("Configured identifier", state.get("configured_identifier")),
    ]
    lines = [f"  {label}: {value or '-'}" for label, value in steps]
    lines.append("  Complete: " + ("yes" if state.get("complete") else "no"))
    return lines


async def main():
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Inspect or reset WhatsApp onboarding wizard state"
    )
    parser.add_argument("action", choices=["show", "reset"], help="Operation")
    parser.add_argument("integration_id", help="Integration instance id")
    parser.add_argument("--token", required=True, help="Operator admin token")
    parser.add_argument(
        "--api-url",
        default="http://localhost:8000/api/v1",
        help="API URL",
    )
    parser.add_argument("--json", action="store_true", help="Print raw JSON")

    args = parser.parse_args()

    try:
        state = await call_state_endpoint(
            action=args.action,
            integration_id=args.integration_id,
            admin_token=args.token,
            api_url=args.api_url,
        )
    except httpx.HTTPError as e:
        logger.error("wizard_state_request_failed", error=str(e))
        print(f"\n✗ Error: {e}\n")
        sys.exit(1)

    if args.json:
        print(json.dumps(state, indent=2))
    else:
        print(f"Integration {args.integration_id}")
        print("\n".join(summarize(state)))


if __name__ == "__main__":
    asyncio.run(main())
