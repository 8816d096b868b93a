"""Property tests for wizard transitions."""

import asyncio

from hypothesis import given, strategies as st

from waba_wizard.core.wizard import WizardController, parse_wizard_request
from waba_wizard.integrations.base import BusinessAccount
from waba_wizard.models.credential_state import CredentialState
from waba_wizard.models.wizard import (
    ConfirmDirective,
    RedirectDirective,
    SelectDirective,
    WizardStep,
)

from tests.fakes import (
    INTEGRATION_ID,
    INTERSTITIAL_URL,
    FakeOAuthClient,
    InMemoryStateStore,
    RecordingConfigurator,
    wizard_url,
)

identifiers = st.text(
    alphabet=st.characters(categories=("Lu", "Ll", "Nd")),
    min_size=1,
    max_size=12,
)
optional_identifiers = st.none() | identifiers

states = st.builds(
    CredentialState,
    access_token=optional_identifiers,
    business_account_id=optional_identifiers,
    phone_number_id=optional_identifiers,
)

queries = st.fixed_dictionaries(
    {},
    optional={
        "code": identifiers,
        "wabaId": identifiers,
        "phoneNumberId": identifiers,
        "force-step": st.sampled_from(["", "true", "1"]),
    },
)


def build_controller(
    state: CredentialState,
    oauth_client: FakeOAuthClient | None = None,
) -> tuple[WizardController, InMemoryStateStore, FakeOAuthClient]:
    store = InMemoryStateStore({INTEGRATION_ID: state})
    oauth_client = oauth_client or FakeOAuthClient()
    controller = WizardController(
        store,  # type: ignore[arg-type]
        oauth_client,
        RecordingConfigurator(),  # type: ignore[arg-type]
        wizard_url=wizard_url,
        interstitial_url=INTERSTITIAL_URL,
    )
    return controller, store, oauth_client


@given(state=states, query=queries)
def test_start_confirm_never_mutates_state(state: CredentialState, query: dict[str, str]):
    controller, store, oauth_client = build_controller(state)
    request = parse_wizard_request(INTEGRATION_ID, {**query, "wizard-step": "start-confirm"})

    directive = asyncio.run(controller.handle(request))

    assert isinstance(directive, ConfirmDirective)
    assert len(directive.options) == 2
    assert store.patches == []
    assert oauth_client.calls == []


@given(state=states, query=queries, integration_id=identifiers)
def test_setup_always_clears_state(
    state: CredentialState,
    query: dict[str, str],
    integration_id: str,
):
    store = InMemoryStateStore({integration_id: state})
    controller = WizardController(
        store,  # type: ignore[arg-type]
        FakeOAuthClient(),
        RecordingConfigurator(),  # type: ignore[arg-type]
        wizard_url=wizard_url,
        interstitial_url=INTERSTITIAL_URL,
    )
    request = parse_wizard_request(integration_id, {**query, "wizard-step": "setup"})

    directive = asyncio.run(controller.handle(request))

    assert isinstance(directive, RedirectDirective)
    assert f"state={integration_id}" in directive.url
    assert store.states[integration_id] == CredentialState()


@given(
    account_ids=st.lists(identifiers, unique=True, max_size=5),
    persisted=optional_identifiers,
    force=st.booleans(),
)
def test_business_selection_tie_break(
    account_ids: list[str],
    persisted: str | None,
    force: bool,
):
    oauth_client = FakeOAuthClient(
        business_accounts=[BusinessAccount(id=i, name=f"Business {i}") for i in account_ids],
    )
    state = CredentialState(access_token="tok1", business_account_id=persisted)
    controller, _, _ = build_controller(state, oauth_client)
    query = {"wizard-step": "verify-waba"}
    if force:
        query["force-step"] = ""

    result = asyncio.run(
        controller.transition(
            WizardStep.VERIFY_WABA,
            state,
            parse_wizard_request(INTEGRATION_ID, query),
        )
    )

    listed = bool(oauth_client.calls_to("list_business_accounts"))
    assert listed == (force or persisted is None)

    if persisted and not force:
        assert result.patch is not None
        assert result.patch.business_account_id == persisted
    elif len(account_ids) == 1:
        assert result.directive is None
        assert result.patch is not None
        assert result.patch.business_account_id == account_ids[0]
    else:
        assert isinstance(result.directive, SelectDirective)
        assert [o.id for o in result.directive.options] == account_ids
        assert result.patch is None
