"""WhatsApp Business integration."""

from waba_wizard.integrations.whatsapp.oauth import MetaGraphError, MetaOAuthClient

__all__ = ["MetaGraphError", "MetaOAuthClient"]
