"""Tests for the credential state store and configuration service."""

import pytest
from sqlalchemy.exc import OperationalError

from waba_wizard.models.credential_state import (
    CredentialState,
    CredentialStateRecord,
    StatePatch,
)
from waba_wizard.services.configuration_service import ConfigurationService
from waba_wizard.services.state_store import CredentialStateStore, SessionFactory


class TestCredentialStateStore:
    """Tests for CredentialStateStore."""

    @pytest.mark.asyncio
    async def test_missing_state_is_empty(self, state_store: CredentialStateStore):
        assert await state_store.get("unknown") == CredentialState()

    @pytest.mark.asyncio
    async def test_patch_merges_shallowly(self, state_store: CredentialStateStore):
        await state_store.patch("i-1", StatePatch(access_token="tok1"))
        merged = await state_store.patch("i-1", StatePatch(business_account_id="B1"))

        assert merged == CredentialState(access_token="tok1", business_account_id="B1")
        assert await state_store.get("i-1") == merged

    @pytest.mark.asyncio
    async def test_patch_overwrites_only_given_fields(self, state_store: CredentialStateStore):
        await state_store.patch(
            "i-1",
            StatePatch(access_token="tok1", business_account_id="B1", phone_number_id="P1"),
        )
        await state_store.patch("i-1", StatePatch(phone_number_id="P2"))

        state = await state_store.get("i-1")
        assert state.access_token == "tok1"
        assert state.business_account_id == "B1"
        assert state.phone_number_id == "P2"

    @pytest.mark.asyncio
    async def test_reset_clears_every_field(self, state_store: CredentialStateStore):
        await state_store.patch(
            "i-1",
            StatePatch(access_token="tok1", business_account_id="B1", phone_number_id="P1"),
        )

        assert await state_store.reset("i-1") == CredentialState()
        assert await state_store.get("i-1") == CredentialState()

    @pytest.mark.asyncio
    async def test_states_are_scoped_per_integration(self, state_store: CredentialStateStore):
        await state_store.patch("i-1", StatePatch(access_token="tok1"))
        await state_store.patch("i-2", StatePatch(access_token="tok2"))

        assert (await state_store.get("i-1")).access_token == "tok1"
        assert (await state_store.get("i-2")).access_token == "tok2"

    @pytest.mark.asyncio
    async def test_payload_uses_platform_keys(
        self,
        state_store: CredentialStateStore,
        session_factory: SessionFactory,
    ):
        await state_store.patch("i-1", StatePatch(access_token="tok1", business_account_id="B1"))

        async with session_factory() as session:
            record = await session.get(CredentialStateRecord, "i-1")

        assert record is not None
        assert record.payload == {"accessToken": "tok1", "wabaId": "B1"}

    @pytest.mark.asyncio
    async def test_read_failure_is_treated_as_empty(self):
        def broken_session():
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        store = CredentialStateStore(broken_session)

        assert await store.get("i-1") == CredentialState()

    @pytest.mark.asyncio
    async def test_patch_does_not_overwrite_after_failed_read(
        self,
        state_store: CredentialStateStore,
        session_factory: SessionFactory,
    ):
        await state_store.patch(
            "i-1",
            StatePatch(access_token="tok1", business_account_id="B1", phone_number_id="P1"),
        )
        sessions_opened = 0

        def flaky_session():
            nonlocal sessions_opened
            sessions_opened += 1
            if sessions_opened == 1:
                raise OperationalError("SELECT", {}, Exception("connection reset"))
            return session_factory()

        with pytest.raises(OperationalError):
            await CredentialStateStore(flaky_session).patch("i-1", StatePatch(phone_number_id="P2"))

        assert await state_store.get("i-1") == CredentialState(
            access_token="tok1",
            business_account_id="B1",
            phone_number_id="P1",
        )


class TestStatePatch:
    """Tests for StatePatch and CredentialState merging."""

    def test_none_fields_are_ignored(self):
        state = CredentialState(access_token="tok1", business_account_id="B1")

        merged = state.merged(StatePatch(phone_number_id="P1"))

        assert merged == CredentialState(
            access_token="tok1",
            business_account_id="B1",
            phone_number_id="P1",
        )

    def test_reset_then_values(self):
        state = CredentialState(access_token="tok1", business_account_id="B1")

        merged = state.merged(StatePatch(reset=True, access_token="tok2"))

        assert merged == CredentialState(access_token="tok2")

    def test_clear_drops_named_fields(self):
        state = CredentialState(access_token="tok1", business_account_id="B1", phone_number_id="P1")

        merged = state.merged(StatePatch(business_account_id="B2", clear=["phone_number_id"]))

        assert merged == CredentialState(access_token="tok1", business_account_id="B2")
        assert not StatePatch(clear=["phone_number_id"]).is_empty

    def test_empty_patch(self):
        assert StatePatch().is_empty
        assert not StatePatch(reset=True).is_empty
        assert not StatePatch(access_token="tok1").is_empty

    def test_from_payload_ignores_empty_values(self):
        state = CredentialState.from_payload({"accessToken": "", "wabaId": "B1", "other": "x"})

        assert state == CredentialState(business_account_id="B1")


class TestConfigurationService:
    """Tests for ConfigurationService."""

    @pytest.mark.asyncio
    async def test_configure_and_reconfigure(self, configurator: ConfigurationService):
        assert await configurator.get_identifier("i-1") is None

        await configurator.configure_integration("i-1", identifier="i-1")
        assert await configurator.get_identifier("i-1") == "i-1"

        await configurator.configure_integration("i-1", identifier="B1")
        assert await configurator.get_identifier("i-1") == "B1"
