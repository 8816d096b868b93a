"""Test doubles for the wizard's collaborators."""

from waba_wizard.integrations.base import (
    BaseOAuthClient,
    BusinessAccount,
    OAuthCodeExchangeError,
    PhoneNumber,
)
from waba_wizard.models.credential_state import CredentialState, StatePatch


class FakeOAuthClient(BaseOAuthClient):
    """In-memory provider that records every call."""

    def __init__(
        self,
        tokens: dict[str, str] | None = None,
        business_accounts: list[BusinessAccount] | None = None,
        phone_numbers: dict[str, list[PhoneNumber]] | None = None,
    ) -> None:
        self.tokens = tokens or {}
        self.business_accounts = business_accounts or []
        self.phone_numbers = phone_numbers or {}
        self.calls: list[tuple] = []

    def calls_to(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def build_authorization_url(self, state: str) -> str:
        return f"https://auth.example.com/dialog/oauth?state={state}"

    async def exchange_code(self, code: str) -> str:
        self.calls.append(("exchange_code", code))
        if code not in self.tokens:
            raise OAuthCodeExchangeError(f"Unknown code: {code}")
        return self.tokens[code]

    async def list_business_accounts(self, access_token: str) -> list[BusinessAccount]:
        self.calls.append(("list_business_accounts", access_token))
        return list(self.business_accounts)

    async def list_phone_numbers(
        self,
        business_account_id: str,
        access_token: str,
    ) -> list[PhoneNumber]:
        self.calls.append(("list_phone_numbers", business_account_id, access_token))
        return list(self.phone_numbers.get(business_account_id, []))

    async def register_number(self, phone_number_id: str, access_token: str) -> None:
        self.calls.append(("register_number", phone_number_id, access_token))

    async def subscribe_webhooks(self, business_account_id: str, access_token: str) -> None:
        self.calls.append(("subscribe_webhooks", business_account_id, access_token))


class InMemoryStateStore:
    """Dict-backed stand-in for CredentialStateStore."""

    def __init__(self, states: dict[str, CredentialState] | None = None) -> None:
        self.states = dict(states or {})
        self.patches: list[tuple[str, StatePatch]] = []

    async def get(self, integration_id: str) -> CredentialState:
        return self.states.get(integration_id, CredentialState())

    async def patch(self, integration_id: str, patch: StatePatch) -> CredentialState:
        self.patches.append((integration_id, patch))
        merged = (await self.get(integration_id)).merged(patch)
        self.states[integration_id] = merged
        return merged

    async def reset(self, integration_id: str) -> CredentialState:
        return await self.patch(integration_id, StatePatch(reset=True))


class RecordingConfigurator:
    """Stand-in for ConfigurationService."""

    def __init__(self) -> None:
        self.identifiers: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []

    async def configure_integration(self, integration_id: str, identifier: str) -> None:
        self.calls.append((integration_id, identifier))
        self.identifiers[integration_id] = identifier

    async def get_identifier(self, integration_id: str) -> str | None:
        return self.identifiers.get(integration_id)


def wizard_url(integration_id: str) -> str:
    return f"http://test/api/v1/integrations/{integration_id}/wizard"


INTERSTITIAL_URL = "http://test/done?success=true"
INTEGRATION_ID = "integration-123"
