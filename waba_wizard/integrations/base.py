"""Base classes for provider integrations.

Defines the interface the wizard expects from a messaging provider's OAuth
client, and the records it returns.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class OAuthError(Exception):
    """Base provider OAuth/API error."""

    pass


class OAuthNotConfiguredError(OAuthError):
    """Provider app is not configured (missing client_id/secret)."""

    pass


class OAuthCodeExchangeError(OAuthError):
    """Failed to exchange authorization code for an access token."""

    pass


@dataclass
class OAuthConfig:
    """OAuth configuration for a provider app."""

    client_id: str | None
    client_secret: str | None
    redirect_uri: str
    authorize_url: str
    api_base_url: str
    config_id: str | None = None


@dataclass
class BusinessAccount:
    """Candidate business account granted to a token."""

    id: str
    name: str


@dataclass
class PhoneNumber:
    """Candidate phone number of a business account."""

    id: str
    display_phone_number: str
    verified_name: str

    @property
    def display(self) -> str:
        return f"{self.display_phone_number} ({self.verified_name})"


class BaseOAuthClient(ABC):
    """Provider OAuth client used by the wizard.

    Each implementation must provide:
    - exchange_code(): Exchange authorization code for an access token
    - list_business_accounts(): Business accounts granted to a token
    - list_phone_numbers(): Phone numbers of a business account
    - register_number(): Register a phone number for messaging
    - subscribe_webhooks(): Subscribe a business account to webhook delivery

    register_number() and subscribe_webhooks() must be safe to repeat.
    """

    @abstractmethod
    def build_authorization_url(self, state: str) -> str:
        """Authorization dialog URL embedding the correlation token."""
        ...

    @abstractmethod
    async def exchange_code(self, code: str) -> str:
        ...

    @abstractmethod
    async def list_business_accounts(self, access_token: str) -> list[BusinessAccount]:
        ...

    @abstractmethod
    async def list_phone_numbers(
        self,
        business_account_id: str,
        access_token: str,
    ) -> list[PhoneNumber]:
        ...

    @abstractmethod
    async def register_number(self, phone_number_id: str, access_token: str) -> None:
        ...

    @abstractmethod
    async def subscribe_webhooks(self, business_account_id: str, access_token: str) -> None:
        ...
