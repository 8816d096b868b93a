"""Configuration acknowledgment service.

Tells the owning platform which identity an integration instance answers to.
The wizard calls it at setup (integration id) and at wrap-up (business
account id).
"""

import structlog

from waba_wizard.models.integration import IntegrationConfiguration
from waba_wizard.models.credential_state import utc_now
from waba_wizard.services.state_store import SessionFactory

logger = structlog.get_logger()


class ConfigurationService:
    """Upserts IntegrationConfiguration rows."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def configure_integration(self, integration_id: str, identifier: str) -> None:
        """Record the externally visible identifier of an integration.

        Args:
            integration_id: Integration instance id
            identifier: Identity used to route incoming webhooks
        """
        async with self._session_factory() as session:
            record = await session.get(IntegrationConfiguration, integration_id)
            if record is None:
                record = IntegrationConfiguration(
                    integration_id=integration_id,
                    identifier=identifier,
                )
                session.add(record)
            else:
                record.identifier = identifier
                record.updated_at = utc_now()
            await session.commit()

        logger.info(
            "integration_configured",
            integration_id=integration_id,
            identifier=identifier,
        )

    async def get_identifier(self, integration_id: str) -> str | None:
        async with self._session_factory() as session:
            record = await session.get(IntegrationConfiguration, integration_id)
            return record.identifier if record else None
