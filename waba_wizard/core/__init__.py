"""Core layer - Wizard state machine and directive rendering."""

from waba_wizard.core.directives import DirectiveRenderer
from waba_wizard.core.wizard import (
    WizardController,
    WizardError,
    WizardRequestError,
    WizardResolutionError,
    parse_wizard_request,
)

__all__ = [
    "DirectiveRenderer",
    "WizardController",
    "WizardError",
    "WizardRequestError",
    "WizardResolutionError",
    "parse_wizard_request",
]
