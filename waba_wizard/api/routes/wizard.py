"""Wizard routes.

Inbound endpoints of the WhatsApp onboarding wizard. Every browser
interaction (wizard page, provider callback, select form submission) is a
separate GET request; the persisted credential state ties them together.
"""

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from waba_wizard.api.deps import (
    ConfigurationServiceDep,
    DirectiveRendererDep,
    StateStoreDep,
    WizardControllerDep,
    require_operator,
)
from waba_wizard.core.directives import DirectiveRenderer
from waba_wizard.core.wizard import (
    WizardController,
    WizardError,
    parse_wizard_request,
)
from waba_wizard.integrations.base import OAuthError, OAuthNotConfiguredError
from waba_wizard.models.credential_state import CredentialStateRead
from waba_wizard.models.wizard import Directive, ErrorDirective

logger = structlog.get_logger()

router = APIRouter(tags=["wizard"])


async def run_wizard(
    controller: WizardController,
    renderer: DirectiveRenderer,
    integration_id: str,
    request: Request,
) -> Response:
    """Run the wizard for a request and render its directive.

    Wizard and provider failures become error directives; anything else
    propagates to the global exception handler.
    """
    directive: Directive
    try:
        wizard_request = parse_wizard_request(integration_id, request.query_params)
        directive = await controller.handle(wizard_request)

    except WizardError as e:
        logger.warning(
            "wizard_request_failed",
            integration_id=integration_id,
            error_type=type(e).__name__,
            error=str(e),
        )
        directive = ErrorDirective(message=str(e))

    except OAuthNotConfiguredError as e:
        logger.error(
            "wizard_provider_not_configured",
            integration_id=integration_id,
            error=str(e),
        )
        directive = ErrorDirective(message=str(e), status_code=500)

    except OAuthError as e:
        logger.error(
            "wizard_provider_call_failed",
            integration_id=integration_id,
            error_type=type(e).__name__,
            error=str(e),
        )
        directive = ErrorDirective(
            message=f"The WhatsApp provider returned an error, please try again. ({e})",
            status_code=502,
        )

    return renderer.render(directive)


@router.get(
    "/integrations/{integration_id}/wizard",
    summary="Run wizard step",
    description=(
        "Execute the onboarding wizard for an integration. Accepts wizard-step, "
        "code, wabaId, phoneNumberId and force-step query parameters."
    ),
)
async def wizard(
    integration_id: str,
    request: Request,
    controller: WizardControllerDep,
    renderer: DirectiveRendererDep,
) -> Response:
    return await run_wizard(controller, renderer, integration_id, request)


@router.get(
    "/oauth/callback",
    summary="OAuth callback",
    description=(
        "Global redirect target of the Meta OAuth dialog. The state parameter "
        "identifies the integration whose wizard continues."
    ),
)
async def oauth_callback(
    request: Request,
    controller: WizardControllerDep,
    renderer: DirectiveRendererDep,
    state: str | None = Query(default=None, description="Correlation token (integration id)"),
    error: str | None = Query(default=None, description="Error from provider"),
    error_description: str | None = Query(default=None, description="Error description"),
) -> Response:
    """Handle the provider's redirect back to this service.

    The authorization code is exchanged by the wizard's get-access-token step.
    """
    if error:
        logger.warning(
            "oauth_callback_error_from_provider",
            integration_id=state,
            error=error,
            error_description=error_description,
        )
        return renderer.render(
            ErrorDirective(message=f"Authorization failed: {error_description or error}")
        )

    if not state:
        logger.warning("oauth_callback_missing_state")
        return renderer.render(ErrorDirective(message="Missing state parameter"))

    return await run_wizard(controller, renderer, state, request)


@router.get(
    "/integrations/{integration_id}/wizard/state",
    response_model=CredentialStateRead,
    dependencies=[Depends(require_operator)],
    summary="Get wizard state",
)
async def get_wizard_state(
    integration_id: str,
    store: StateStoreDep,
    configurator: ConfigurationServiceDep,
) -> CredentialStateRead:
    """Get the persisted wizard state with the access token masked."""
    state = await store.get(integration_id)
    identifier = await configurator.get_identifier(integration_id)
    return CredentialStateRead.from_state(integration_id, state, identifier)


@router.delete(
    "/integrations/{integration_id}/wizard/state",
    response_model=CredentialStateRead,
    dependencies=[Depends(require_operator)],
    summary="Reset wizard state",
)
async def reset_wizard_state(
    integration_id: str,
    store: StateStoreDep,
    configurator: ConfigurationServiceDep,
) -> CredentialStateRead:
    """Clear every persisted credential of an integration."""
    state = await store.reset(integration_id)
    identifier = await configurator.get_identifier(integration_id)

    logger.info("wizard_state_reset_by_operator", integration_id=integration_id)

    return CredentialStateRead.from_state(integration_id, state, identifier)
