#!/usr/bin/env python3
"""
Walk through the WhatsApp onboarding wizard from a terminal.

Usage:
1. Start backend: uvicorn waba_wizard.main:app --reload
2. Run this script: python scripts/run_wizard_flow.py <integration-id>
3. Open the authorization URL in a browser and authorize
4. Paste the callback URL back here and answer the selection prompts
"""

import asyncio
import re
import sys
from urllib.parse import parse_qs, urlparse

import httpx


BASE_URL = "http://localhost:8000/api/v1"
REQUEST_TIMEOUT = 60.0

_RADIO = re.compile(r'type="radio" name="([^"]+)" value="([^"]+)"')
_HIDDEN = re.compile(r'type="hidden" name="([^"]+)" value="([^"]+)"')


async def main(integration_id: str) -> bool:
    print("=" * 60)
    print("WhatsApp Onboarding Wizard - Terminal Walkthrough")
    print("=" * 60)

    wizard_url = f"{BASE_URL}/integrations/{integration_id}/wizard"

    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
        # Step 1: Reset and get the authorization redirect
        print("\nStep 1: Setup")
        print("-" * 60)
        response = await client.get(wizard_url, params={"wizard-step": "setup"})
        if response.status_code != 302:
            print(f"✗ Unexpected response: {response.status_code} {response.text}")
            return False

        print("Open this URL in your browser and authorize:\n")
        print(response.headers["location"])
        print("\nCopy the FULL redirect URL from the browser address bar and paste here:")
        callback_url = input("Paste redirect URL: ").strip()

        params = {k: v[0] for k, v in parse_qs(urlparse(callback_url).query).items()}
        if "code" not in params:
            print("✗ No code found in URL")
            return False

        # Step 2: Replay the callback, then answer select dialogs until done
        print("\nStep 2: Callback")
        print("-" * 60)
        response = await client.get(f"{BASE_URL}/oauth/callback", params=params)

        while response.status_code == 200:
            options = _RADIO.findall(response.text)
            hidden = dict(_HIDDEN.findall(response.text))
            if not options:
                print("✗ No options offered")
                return False

            key = options[0][0]
            print(f"Choose {key}:")
            for index, (_, value) in enumerate(options, start=1):
                print(f"  {index}. {value}")
            choice = int(input("Number: ").strip()) - 1

            response = await client.get(
                wizard_url,
                params={**hidden, key: options[choice][1]},
            )

        if response.status_code == 302:
            print(f"✓ Wizard finished: {response.headers['location']}")
            return True

        print(f"✗ Wizard failed: {response.status_code}")
        print(response.text)
        return False


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(0 if asyncio.run(main(sys.argv[1])) else 1)
