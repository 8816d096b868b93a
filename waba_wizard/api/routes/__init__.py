"""API route handlers."""

from waba_wizard.api.routes.wizard import router as wizard_router

__all__ = [
    "wizard_router",
]
