"""Wizard runtime models.

Steps, inbound request parameters, and the directives returned to the
browser. None of these are persisted.
"""

from dataclasses import dataclass, field
from enum import Enum

from waba_wizard.models.credential_state import StatePatch


class WizardStep(str, Enum):
    """Steps of the onboarding wizard, in flow order."""

    START_CONFIRM = "start-confirm"
    SETUP = "setup"
    GET_ACCESS_TOKEN = "get-access-token"
    VERIFY_WABA = "verify-waba"
    VERIFY_NUMBER = "verify-number"
    WRAP_UP = "wrap-up"


# Query parameter names shared by the browser, the select forms and the callback
STEP_PARAM = "wizard-step"
CODE_PARAM = "code"
WABA_PARAM = "wabaId"
PHONE_NUMBER_PARAM = "phoneNumberId"
FORCE_PARAM = "force-step"


@dataclass(frozen=True)
class WizardRequest:
    """Parameters of one inbound wizard request."""

    integration_id: str
    step: WizardStep = WizardStep.GET_ACCESS_TOKEN
    code: str | None = None
    waba_id: str | None = None
    phone_number_id: str | None = None
    force: bool = False


class ButtonAction(str, Enum):
    NAVIGATE = "NAVIGATE"
    CLOSE_WINDOW = "CLOSE_WINDOW"


@dataclass(frozen=True)
class DialogButton:
    display: str
    kind: str
    action: ButtonAction
    payload: str | None = None


@dataclass(frozen=True)
class SelectOption:
    id: str
    display: str


@dataclass(frozen=True)
class RedirectDirective:
    url: str


@dataclass(frozen=True)
class ConfirmDirective:
    title: str
    description: str
    options: list[DialogButton]


@dataclass(frozen=True)
class SelectDirective:
    """Single-select dialog.

    The follow-up request goes to ``target_url`` with ``key`` set to the
    chosen option id and every continuation param re-attached.
    """

    title: str
    description: str
    key: str
    options: list[SelectOption]
    target_url: str
    continuation_params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ErrorDirective:
    message: str
    status_code: int = 400


Directive = RedirectDirective | ConfirmDirective | SelectDirective | ErrorDirective


@dataclass(frozen=True)
class Transition:
    """Outcome of executing a single wizard step.

    Either ``directive`` ends the request, or ``next_step`` continues it.
    ``patch`` is persisted before either happens.
    """

    directive: Directive | None = None
    patch: StatePatch | None = None
    next_step: WizardStep | None = None

    def __post_init__(self) -> None:
        if (self.directive is None) == (self.next_step is None):
            raise ValueError("Transition needs exactly one of directive or next_step")
