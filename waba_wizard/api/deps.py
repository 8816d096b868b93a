"""API dependencies for FastAPI dependency injection.

Provides database sessions and the wizard's collaborators.
"""

import secrets
from typing import Annotated, AsyncGenerator

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from waba_wizard.config import settings
from waba_wizard.core.directives import DirectiveRenderer
from waba_wizard.core.wizard import WizardController
from waba_wizard.integrations.base import BaseOAuthClient
from waba_wizard.integrations.whatsapp.oauth import MetaOAuthClient
from waba_wizard.services.configuration_service import ConfigurationService
from waba_wizard.services.state_store import CredentialStateStore, SessionFactory

logger = structlog.get_logger()

# Database engine and session
_engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_timeout=settings.database_pool_timeout,
)

_async_session_maker = sessionmaker(
    _engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Security
_bearer_scheme = HTTPBearer(auto_error=False)


async def init_db() -> None:
    """Initialize database tables.

    Only call during development. Use Alembic migrations in production.
    """
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("database_initialized")


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session.

    Yields:
        AsyncSession that will be closed after use
    """
    async with _async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


DBSession = Annotated[AsyncSession, Depends(get_db_session)]


async def require_operator(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> None:
    """Guard operator endpoints with the static admin bearer token.

    Raises:
        HTTPException 503: If no admin token is configured
        HTTPException 401: If the token is missing or wrong
    """
    if settings.admin_token is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Operator endpoints are disabled",
        )

    if credentials is None or not secrets.compare_digest(
        credentials.credentials.encode("utf-8"),
        settings.admin_token.get_secret_value().encode("utf-8"),
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_session_factory() -> SessionFactory:
    """Get the session factory used by the stores."""
    return _async_session_maker


SessionFactoryDep = Annotated[SessionFactory, Depends(get_session_factory)]


def get_state_store(session_factory: SessionFactoryDep) -> CredentialStateStore:
    """Get credential state store instance."""
    return CredentialStateStore(session_factory)


def get_configuration_service(session_factory: SessionFactoryDep) -> ConfigurationService:
    """Get configuration acknowledgment service instance."""
    return ConfigurationService(session_factory)


def get_oauth_client() -> BaseOAuthClient:
    """Get WhatsApp OAuth client instance."""
    return MetaOAuthClient()


def get_directive_renderer() -> DirectiveRenderer:
    return DirectiveRenderer()


StateStoreDep = Annotated[CredentialStateStore, Depends(get_state_store)]
ConfigurationServiceDep = Annotated[ConfigurationService, Depends(get_configuration_service)]
OAuthClientDep = Annotated[BaseOAuthClient, Depends(get_oauth_client)]
DirectiveRendererDep = Annotated[DirectiveRenderer, Depends(get_directive_renderer)]


def get_wizard_controller(
    store: StateStoreDep,
    oauth_client: OAuthClientDep,
    configurator: ConfigurationServiceDep,
) -> WizardController:
    """Get wizard controller instance."""
    return WizardController(store, oauth_client, configurator)


WizardControllerDep = Annotated[WizardController, Depends(get_wizard_controller)]
