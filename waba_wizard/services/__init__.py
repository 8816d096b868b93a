"""Services layer - Persistence and platform collaborators."""

from waba_wizard.services.configuration_service import ConfigurationService
from waba_wizard.services.state_store import CredentialStateStore

__all__ = [
    "ConfigurationService",
    "CredentialStateStore",
]
