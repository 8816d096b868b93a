"""WhatsApp Business onboarding wizard service."""

__version__ = "0.1.0"
