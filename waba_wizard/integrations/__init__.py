"""Integrations module.

Each messaging provider has its own folder with:
- oauth.py: OAuth configuration, token exchange and provisioning calls
- __init__.py: Exports
"""

from waba_wizard.integrations.base import (
    BaseOAuthClient,
    BusinessAccount,
    OAuthCodeExchangeError,
    OAuthError,
    OAuthNotConfiguredError,
    PhoneNumber,
)

__all__ = [
    "BaseOAuthClient",
    "BusinessAccount",
    "OAuthCodeExchangeError",
    "OAuthError",
    "OAuthNotConfiguredError",
    "PhoneNumber",
]
