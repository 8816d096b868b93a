"""Credential state store.

Durable key-value store for the wizard's credential state, keyed by
integration instance id.

Reads and writes each run in their own session; there is no transaction
spanning a read and the following write. Concurrent wizard requests for the
same integration race with last-write-wins semantics.
"""

from typing import Callable

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from waba_wizard.models.credential_state import (
    CredentialState,
    CredentialStateRecord,
    StatePatch,
    utc_now,
)

logger = structlog.get_logger()

SessionFactory = Callable[[], AsyncSession]


class CredentialStateStore:
    """Get/patch access to persisted credential state.

    Example usage:
        store = CredentialStateStore(session_maker)

        state = await store.get("integration-123")
        state = await store.patch(
            "integration-123",
            StatePatch(access_token="EAAG..."),
        )
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        """Initialize the store.

        Args:
            session_factory: Callable returning a new AsyncSession
        """
        self._session_factory = session_factory

    async def get(self, integration_id: str) -> CredentialState:
        """Get the credential state of an integration.

        A missing record is the empty state. A failed read is also treated as
        the empty state; the wizard then repeats the affected steps.
        """
        try:
            return await self._read(integration_id)
        except SQLAlchemyError as e:
            logger.warning(
                "credential_state_read_failed",
                integration_id=integration_id,
                error=str(e),
            )
            return CredentialState()

    async def _read(self, integration_id: str) -> CredentialState:
        async with self._session_factory() as session:
            record = await session.get(CredentialStateRecord, integration_id)
            return CredentialState.from_payload(record.payload if record else None)

    async def patch(self, integration_id: str, patch: StatePatch) -> CredentialState:
        """Merge a patch into the stored state (read-merge-write).

        Unlike ``get``, a failed read raises instead of yielding the empty state.

        Args:
            integration_id: Integration instance id
            patch: Partial update; ``reset`` clears all fields first

        Returns:
            The merged state as written
        """
        current = await self._read(integration_id)
        merged = current.merged(patch)

        async with self._session_factory() as session:
            record = await session.get(CredentialStateRecord, integration_id)
            if record is None:
                record = CredentialStateRecord(integration_id=integration_id)
                session.add(record)
            record.payload = merged.to_payload()
            record.updated_at = utc_now()
            await session.commit()

        logger.info(
            "credential_state_patched",
            integration_id=integration_id,
            fields=sorted(patch.values()),
            cleared=patch.clear,
            reset=patch.reset,
        )

        return merged

    async def reset(self, integration_id: str) -> CredentialState:
        """Clear every credential field of an integration."""
        return await self.patch(integration_id, StatePatch(reset=True))
