"""WhatsApp Business (Meta) OAuth integration.

Implements the authorization-code flow of Facebook Login for Business and the
Graph API calls needed to provision a WhatsApp Business Account.
Docs: https://developers.facebook.com/docs/whatsapp/embedded-signup
"""

from typing import Any
from urllib.parse import urlencode

import httpx
import structlog

from waba_wizard.config import Settings, settings as default_settings
from waba_wizard.integrations.base import (
    BaseOAuthClient,
    BusinessAccount,
    OAuthCodeExchangeError,
    OAuthConfig,
    OAuthError,
    OAuthNotConfiguredError,
    PhoneNumber,
)

logger = structlog.get_logger()

WHATSAPP_MANAGEMENT_SCOPE = "whatsapp_business_management"


class MetaGraphError(OAuthError):
    """Graph API returned an error or an unexpected payload."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


def build_oauth_config(settings: Settings) -> OAuthConfig:
    """Build the Meta app OAuth configuration from settings."""
    return OAuthConfig(
        client_id=settings.meta_client_id,
        client_secret=(
            settings.meta_client_secret.get_secret_value()
            if settings.meta_client_secret
            else None
        ),
        redirect_uri=settings.oauth_callback_url,
        authorize_url=f"https://www.facebook.com/{settings.meta_graph_version}/dialog/oauth",
        api_base_url=f"https://graph.facebook.com/{settings.meta_graph_version}",
        config_id=settings.meta_oauth_config_id,
    )


class MetaOAuthClient(BaseOAuthClient):
    """Graph API client for WhatsApp Business onboarding.

    Every call opens its own HTTP client; nothing is retried here.

    Example usage:
        client = MetaOAuthClient()

        url = client.build_authorization_url(state=integration_id)

        token = await client.exchange_code(code)
        accounts = await client.list_business_accounts(token)
    """

    def __init__(
        self,
        config: OAuthConfig | None = None,
        registration_pin: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or build_oauth_config(default_settings)
        self._registration_pin = (
            registration_pin
            or default_settings.meta_registration_pin.get_secret_value()
        )
        self._timeout = timeout or default_settings.meta_timeout
        self._transport = transport

    @property
    def config(self) -> OAuthConfig:
        return self._config

    def _require_configured(self) -> OAuthConfig:
        if not self._config.client_id or not self._config.client_secret:
            raise OAuthNotConfiguredError(
                "WhatsApp integration is not configured. "
                "Set META_CLIENT_ID and META_CLIENT_SECRET environment variables."
            )
        return self._config

    def build_authorization_url(self, state: str) -> str:
        """Generate the OAuth dialog URL.

        Args:
            state: Correlation token echoed back on the callback

        Returns:
            Authorization URL to redirect the browser to
        """
        config = self._require_configured()

        params: dict[str, str] = {
            "client_id": config.client_id,  # type: ignore[dict-item]
            "redirect_uri": config.redirect_uri,
            "state": state,
        }
        if config.config_id:
            params["config_id"] = config.config_id
        params["override_default_response_type"] = "true"
        params["response_type"] = "code"

        logger.info(
            "meta_authorization_url_generated",
            redirect_uri=config.redirect_uri,
        )

        return f"{config.authorize_url}?{urlencode(params)}"

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        access_token: str | None = None,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Call the Graph API and return the decoded body.

        Raises:
            MetaGraphError: On transport errors, error payloads or non-2xx responses
        """
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else None

        try:
            async with self._http_client() as client:
                response = await client.request(
                    method,
                    path,
                    params=params,
                    json=json,
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error("meta_graph_http_error", path=path, error=str(e))
            raise MetaGraphError(f"HTTP error calling Graph API {path}: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not isinstance(data, dict):
            data = {}

        error = data.get("error")
        if error or response.is_error:
            error = error if isinstance(error, dict) else {}
            message = error.get("message") or f"HTTP {response.status_code}"
            logger.error(
                "meta_graph_request_failed",
                path=path,
                status_code=response.status_code,
                error=message,
                error_code=error.get("code"),
            )
            raise MetaGraphError(
                f"Graph API request {path} failed: {message}",
                code=error.get("code"),
            )

        return data

    async def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for a user access token.

        Raises:
            OAuthNotConfiguredError: If the Meta app is not configured
            OAuthCodeExchangeError: If the exchange fails
        """
        config = self._require_configured()

        try:
            data = await self._request(
                "GET",
                "/oauth/access_token",
                params={
                    "client_id": config.client_id,  # type: ignore[dict-item]
                    "client_secret": config.client_secret,  # type: ignore[dict-item]
                    "redirect_uri": config.redirect_uri,
                    "code": code,
                },
            )
        except MetaGraphError as e:
            raise OAuthCodeExchangeError(f"Meta OAuth exchange failed: {e}") from e

        access_token = data.get("access_token")
        if not access_token:
            raise OAuthCodeExchangeError("No access token in Meta response")

        logger.info("meta_oauth_exchange_success", expires_in=data.get("expires_in"))

        return access_token

    async def list_business_accounts(self, access_token: str) -> list[BusinessAccount]:
        """List the WhatsApp Business Accounts granted to a token.

        The granted accounts are the target ids of the management scope in
        the token's debug info.
        """
        config = self._require_configured()

        debug = await self._request(
            "GET",
            "/debug_token",
            params={
                "input_token": access_token,
                "access_token": f"{config.client_id}|{config.client_secret}",
            },
        )

        target_ids: list[str] = []
        for scope in (debug.get("data") or {}).get("granular_scopes") or []:
            if scope.get("scope") == WHATSAPP_MANAGEMENT_SCOPE:
                target_ids.extend(scope.get("target_ids") or [])

        accounts = []
        for waba_id in dict.fromkeys(target_ids):
            data = await self._request(
                "GET",
                f"/{waba_id}",
                access_token=access_token,
                params={"fields": "id,name"},
            )
            accounts.append(
                BusinessAccount(id=data.get("id", waba_id), name=data.get("name", waba_id))
            )

        logger.info("meta_business_accounts_listed", count=len(accounts))

        return accounts

    async def list_phone_numbers(
        self,
        business_account_id: str,
        access_token: str,
    ) -> list[PhoneNumber]:
        data = await self._request(
            "GET",
            f"/{business_account_id}/phone_numbers",
            access_token=access_token,
            params={"fields": "id,display_phone_number,verified_name"},
        )

        numbers = [
            PhoneNumber(
                id=item["id"],
                display_phone_number=item.get("display_phone_number", ""),
                verified_name=item.get("verified_name", ""),
            )
            for item in data.get("data") or []
            if item.get("id")
        ]

        logger.info(
            "meta_phone_numbers_listed",
            waba_id=business_account_id,
            count=len(numbers),
        )

        return numbers

    async def register_number(self, phone_number_id: str, access_token: str) -> None:
        data = await self._request(
            "POST",
            f"/{phone_number_id}/register",
            access_token=access_token,
            json={"messaging_product": "whatsapp", "pin": self._registration_pin},
        )
        if not data.get("success"):
            raise MetaGraphError(f"Registering phone number {phone_number_id} failed")

        logger.info("meta_phone_number_registered", phone_number_id=phone_number_id)

    async def subscribe_webhooks(self, business_account_id: str, access_token: str) -> None:
        data = await self._request(
            "POST",
            f"/{business_account_id}/subscribed_apps",
            access_token=access_token,
        )
        if not data.get("success"):
            raise MetaGraphError(
                f"Subscribing business account {business_account_id} to webhooks failed"
            )

        logger.info("meta_webhooks_subscribed", waba_id=business_account_id)
