"""Pytest configuration and fixtures.

Provides common fixtures for all tests including:
- Database engine and session factory (in-memory SQLite)
- Credential state store and configuration service
- Fake WhatsApp OAuth client
- Wizard controller and HTTP client
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from waba_wizard.api.deps import get_oauth_client, get_session_factory
from waba_wizard.core.wizard import WizardController
from waba_wizard.integrations.base import BusinessAccount, PhoneNumber
from waba_wizard.main import app
from waba_wizard.services.configuration_service import ConfigurationService
from waba_wizard.services.state_store import CredentialStateStore, SessionFactory

from tests.fakes import INTERSTITIAL_URL, FakeOAuthClient, wizard_url

# Test database URL (uses SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> SessionFactory:
    """Session factory bound to the test engine."""
    return sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def state_store(session_factory: SessionFactory) -> CredentialStateStore:
    return CredentialStateStore(session_factory)


@pytest.fixture
def configurator(session_factory: SessionFactory) -> ConfigurationService:
    return ConfigurationService(session_factory)


@pytest.fixture
def oauth_client() -> FakeOAuthClient:
    """Provider with one code, one business account and two numbers."""
    return FakeOAuthClient(
        tokens={"abc": "tok1"},
        business_accounts=[BusinessAccount(id="B1", name="Acme")],
        phone_numbers={
            "B1": [
                PhoneNumber(id="P1", display_phone_number="+1 555 0100", verified_name="Acme"),
                PhoneNumber(id="P2", display_phone_number="+1 555 0101", verified_name="Acme Support"),
            ],
        },
    )


@pytest.fixture
def controller(
    state_store: CredentialStateStore,
    oauth_client: FakeOAuthClient,
    configurator: ConfigurationService,
) -> WizardController:
    return WizardController(
        state_store,
        oauth_client,
        configurator,
        wizard_url=wizard_url,
        interstitial_url=INTERSTITIAL_URL,
    )


@pytest_asyncio.fixture
async def client(
    session_factory: SessionFactory,
    oauth_client: FakeOAuthClient,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_oauth_client] = lambda: oauth_client

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
