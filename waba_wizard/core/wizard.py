"""Onboarding wizard controller.

Drives the WhatsApp Business onboarding flow across independent HTTP
requests. The flow's state lives in the credential state store, never in
process memory:

    start-confirm -> setup -> get-access-token -> verify-waba
        -> verify-number -> wrap-up

Each request starts at the step named in its parameters and keeps executing
steps until one of them produces a directive for the browser (a dialog, a
redirect, or the final interstitial). Every step is safe to re-enter with
the same or freshly derived inputs.
"""

from typing import Awaitable, Callable, Mapping, Sequence, TypeVar

import structlog

from waba_wizard.config import settings
from waba_wizard.integrations.base import BaseOAuthClient, BusinessAccount, PhoneNumber
from waba_wizard.models.credential_state import CredentialState, StatePatch
from waba_wizard.models.wizard import (
    CODE_PARAM,
    FORCE_PARAM,
    PHONE_NUMBER_PARAM,
    STEP_PARAM,
    WABA_PARAM,
    ButtonAction,
    ConfirmDirective,
    DialogButton,
    Directive,
    RedirectDirective,
    SelectDirective,
    SelectOption,
    Transition,
    WizardRequest,
    WizardStep,
)
from waba_wizard.services.configuration_service import ConfigurationService
from waba_wizard.services.state_store import CredentialStateStore

logger = structlog.get_logger()

T = TypeVar("T")


class WizardError(Exception):
    """Base wizard error."""

    pass


class WizardRequestError(WizardError):
    """Inbound request parameters cannot drive the wizard."""

    pass


class WizardResolutionError(WizardError):
    """A required credential could not be resolved."""

    pass


MISSING_FIELD_MESSAGES: dict[str, str] = {
    "access_token": "Access token not available, please try again.",
    "business_account_id": "Couldn't get the WhatsApp Business Account",
    "phone_number_id": "Couldn't get the default phone number",
}

# Fields a step needs before it can run
STEP_REQUIREMENTS: dict[WizardStep, tuple[str, ...]] = {
    WizardStep.VERIFY_WABA: ("access_token",),
    WizardStep.VERIFY_NUMBER: ("access_token", "business_account_id"),
    WizardStep.WRAP_UP: ("access_token", "business_account_id", "phone_number_id"),
}


def parse_wizard_request(integration_id: str, query: Mapping[str, str]) -> WizardRequest:
    """Extract wizard parameters from a query string.

    ``force-step`` is a presence flag: any value, including an empty one,
    enables it. Empty identifiers count as absent.

    Raises:
        WizardRequestError: If ``wizard-step`` names an unknown step
    """
    raw_step = query.get(STEP_PARAM) or None
    if raw_step is None:
        step = WizardStep.GET_ACCESS_TOKEN
    else:
        try:
            step = WizardStep(raw_step)
        except ValueError as e:
            raise WizardRequestError(f"Unknown wizard step: {raw_step}") from e

    return WizardRequest(
        integration_id=integration_id,
        step=step,
        code=query.get(CODE_PARAM) or None,
        waba_id=query.get(WABA_PARAM) or None,
        phone_number_id=query.get(PHONE_NUMBER_PARAM) or None,
        force=FORCE_PARAM in query,
    )


def require_fields(state: CredentialState, fields: Sequence[str]) -> None:
    """Raise WizardResolutionError for the first missing field."""
    for name in fields:
        if not getattr(state, name):
            raise WizardResolutionError(MISSING_FIELD_MESSAGES[name])


async def resolve_choice(
    key: str,
    chosen: str | None,
    force: bool,
    list_candidates: Callable[[], Awaitable[Sequence[T]]],
    to_option: Callable[[T], SelectOption],
    build_select: Callable[[list[SelectOption]], SelectDirective],
) -> str | SelectDirective:
    """Pick one candidate, or ask the user to pick.

    An already chosen value wins unless ``force`` is set. Otherwise the
    candidates are listed: exactly one is selected automatically, while zero
    or several produce a select dialog.

    Returns:
        The chosen id, or the SelectDirective to show
    """
    if chosen and not force:
        return chosen

    candidates = await list_candidates()
    options = [to_option(candidate) for candidate in candidates]

    if len(options) == 1:
        logger.info("wizard_choice_auto_selected", key=key, value=options[0].id)
        return options[0].id

    logger.info("wizard_choice_required", key=key, candidates=len(options), forced=force)
    return build_select(options)


class WizardController:
    """State machine of the onboarding wizard.

    ``transition`` executes one step against a given state; ``handle`` runs
    a whole request: it reads the persisted state, executes steps, persists
    each step's patch as soon as the step completes, and returns the first
    directive produced.

    Example usage:
        controller = WizardController(store, MetaOAuthClient(), configurator)

        directive = await controller.handle(
            parse_wizard_request("integration-123", request.query_params)
        )
    """

    def __init__(
        self,
        store: CredentialStateStore,
        oauth_client: BaseOAuthClient,
        configurator: ConfigurationService,
        wizard_url: Callable[[str], str] | None = None,
        interstitial_url: str | None = None,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._configurator = configurator
        self._wizard_url = wizard_url or settings.wizard_url
        self._interstitial_url = interstitial_url or settings.interstitial_url
        self._steps: dict[
            WizardStep,
            Callable[[CredentialState, WizardRequest], Awaitable[Transition]],
        ] = {
            WizardStep.START_CONFIRM: self._start_confirm,
            WizardStep.SETUP: self._setup,
            WizardStep.GET_ACCESS_TOKEN: self._get_access_token,
            WizardStep.VERIFY_WABA: self._verify_waba,
            WizardStep.VERIFY_NUMBER: self._verify_number,
            WizardStep.WRAP_UP: self._wrap_up,
        }

    async def handle(self, request: WizardRequest) -> Directive:
        """Run the wizard for one inbound request.

        Raises:
            WizardResolutionError: If a required credential is missing
            OAuthError: If a provider call fails
        """
        state = await self._store.get(request.integration_id)
        step = request.step

        while True:
            logger.info(
                "wizard_step_started",
                integration_id=request.integration_id,
                step=step.value,
            )
            result = await self.transition(step, state, request)

            if result.patch is not None and not result.patch.is_empty:
                state = await self._store.patch(request.integration_id, result.patch)

            if result.directive is not None:
                logger.info(
                    "wizard_step_suspended",
                    integration_id=request.integration_id,
                    step=step.value,
                    directive=type(result.directive).__name__,
                )
                return result.directive

            step = result.next_step  # type: ignore[assignment]

    async def transition(
        self,
        step: WizardStep,
        state: CredentialState,
        request: WizardRequest,
    ) -> Transition:
        """Execute a single step."""
        require_fields(state, STEP_REQUIREMENTS.get(step, ()))
        return await self._steps[step](state, request)

    async def _start_confirm(
        self,
        state: CredentialState,
        request: WizardRequest,
    ) -> Transition:
        wizard_url = self._wizard_url(request.integration_id)
        return Transition(
            directive=ConfirmDirective(
                title="Reset Configuration",
                description=(
                    "This wizard will reset your configuration, so the bot will stop "
                    "working on WhatsApp until a new configuration is put in place, "
                    "continue?"
                ),
                options=[
                    DialogButton(
                        display="Yes",
                        kind="primary",
                        action=ButtonAction.NAVIGATE,
                        payload=f"{wizard_url}?{STEP_PARAM}={WizardStep.SETUP.value}",
                    ),
                    DialogButton(
                        display="No",
                        kind="secondary",
                        action=ButtonAction.CLOSE_WINDOW,
                    ),
                ],
            )
        )

    async def _setup(self, state: CredentialState, request: WizardRequest) -> Transition:
        await self._configurator.configure_integration(
            request.integration_id,
            identifier=request.integration_id,
        )
        url = self._oauth.build_authorization_url(state=request.integration_id)

        return Transition(
            directive=RedirectDirective(url=url),
            patch=StatePatch(reset=True),
        )

    async def _get_access_token(
        self,
        state: CredentialState,
        request: WizardRequest,
    ) -> Transition:
        patch = None
        access_token = state.access_token

        if request.code:
            access_token = await self._oauth.exchange_code(request.code)
            patch = StatePatch(access_token=access_token)
            logger.info("wizard_access_token_obtained", integration_id=request.integration_id)

        if not access_token:
            raise WizardResolutionError(MISSING_FIELD_MESSAGES["access_token"])

        return Transition(patch=patch, next_step=WizardStep.VERIFY_WABA)

    async def _verify_waba(self, state: CredentialState, request: WizardRequest) -> Transition:
        access_token: str = state.access_token  # type: ignore[assignment]

        result = await resolve_choice(
            key=WABA_PARAM,
            chosen=request.waba_id or state.business_account_id,
            force=request.force,
            list_candidates=lambda: self._oauth.list_business_accounts(access_token),
            to_option=_business_option,
            build_select=lambda options: SelectDirective(
                title="Select Business",
                description="Choose a WhatsApp Business Account to use in this bot:",
                key=WABA_PARAM,
                options=options,
                target_url=self._wizard_url(request.integration_id),
                continuation_params={STEP_PARAM: WizardStep.VERIFY_WABA.value},
            ),
        )
        if isinstance(result, SelectDirective):
            return Transition(directive=result)
        if not result:
            raise WizardResolutionError(MISSING_FIELD_MESSAGES["business_account_id"])

        patch = StatePatch(business_account_id=result)
        # Phone numbers belong to one business account
        if state.business_account_id and result != state.business_account_id:
            patch.clear = ["phone_number_id"]
            logger.info(
                "wizard_business_account_changed",
                integration_id=request.integration_id,
                previous_waba_id=state.business_account_id,
                waba_id=result,
            )

        return Transition(patch=patch, next_step=WizardStep.VERIFY_NUMBER)

    async def _verify_number(
        self,
        state: CredentialState,
        request: WizardRequest,
    ) -> Transition:
        access_token: str = state.access_token  # type: ignore[assignment]
        waba_id: str = state.business_account_id  # type: ignore[assignment]

        result = await resolve_choice(
            key=PHONE_NUMBER_PARAM,
            chosen=request.phone_number_id or state.phone_number_id,
            force=request.force,
            list_candidates=lambda: self._oauth.list_phone_numbers(waba_id, access_token),
            to_option=_phone_number_option,
            build_select=lambda options: SelectDirective(
                title="Select the default number",
                description=(
                    "Choose a phone number from the current WhatsApp Business "
                    "Account to use as default:"
                ),
                key=PHONE_NUMBER_PARAM,
                options=options,
                target_url=self._wizard_url(request.integration_id),
                continuation_params={STEP_PARAM: WizardStep.VERIFY_NUMBER.value},
            ),
        )
        if isinstance(result, SelectDirective):
            return Transition(directive=result)
        if not result:
            raise WizardResolutionError(MISSING_FIELD_MESSAGES["phone_number_id"])

        return Transition(
            patch=StatePatch(phone_number_id=result),
            next_step=WizardStep.WRAP_UP,
        )

    async def _wrap_up(self, state: CredentialState, request: WizardRequest) -> Transition:
        access_token: str = state.access_token  # type: ignore[assignment]
        waba_id: str = state.business_account_id  # type: ignore[assignment]
        phone_number_id: str = state.phone_number_id  # type: ignore[assignment]

        await self._configurator.configure_integration(
            request.integration_id,
            identifier=waba_id,
        )
        await self._oauth.register_number(phone_number_id, access_token)
        await self._oauth.subscribe_webhooks(waba_id, access_token)

        logger.info(
            "wizard_completed",
            integration_id=request.integration_id,
            waba_id=waba_id,
            phone_number_id=phone_number_id,
        )

        return Transition(directive=RedirectDirective(url=self._interstitial_url))


def _business_option(account: BusinessAccount) -> SelectOption:
    return SelectOption(id=account.id, display=account.name)


def _phone_number_option(number: PhoneNumber) -> SelectOption:
    return SelectOption(id=number.id, display=number.display)
