"""Data models - SQLModel entities and runtime models."""

from waba_wizard.models.credential_state import (
    CredentialState,
    CredentialStateRead,
    CredentialStateRecord,
    StatePatch,
)
from waba_wizard.models.integration import IntegrationConfiguration
from waba_wizard.models.wizard import (
    ConfirmDirective,
    Directive,
    ErrorDirective,
    RedirectDirective,
    SelectDirective,
    Transition,
    WizardRequest,
    WizardStep,
)

__all__ = [
    "ConfirmDirective",
    "CredentialState",
    "CredentialStateRead",
    "CredentialStateRecord",
    "Directive",
    "ErrorDirective",
    "IntegrationConfiguration",
    "RedirectDirective",
    "SelectDirective",
    "StatePatch",
    "Transition",
    "WizardRequest",
    "WizardStep",
]
