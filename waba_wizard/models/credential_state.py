"""Credential state model.

Defines the persisted wizard credentials of an integration instance and the
partial updates (state patches) merged into them.

The payload is stored as JSON keyed by the names the owning platform uses
(accessToken, wabaId, phoneNumberId).
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel

PAYLOAD_KEYS: dict[str, str] = {
    "access_token": "accessToken",
    "business_account_id": "wabaId",
    "phone_number_id": "phoneNumberId",
}


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def mask_credential_value(value: str, visible_chars: int = 4) -> str:
    """Mask a credential value for safe display.

    Shows only the first few characters followed by asterisks.
    """
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * min(8, len(value) - visible_chars)


class StatePatch(SQLModel):
    """Partial update of a CredentialState.

    None fields leave the stored value untouched. When ``reset`` is set,
    every field is cleared before the remaining values are applied; ``clear``
    names individual fields to drop.
    """

    access_token: str | None = None
    business_account_id: str | None = None
    phone_number_id: str | None = None
    reset: bool = False
    clear: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.reset and not self.clear and not self.values()

    def values(self) -> dict[str, str]:
        return {
            field: getattr(self, field)
            for field in PAYLOAD_KEYS
            if getattr(self, field) is not None
        }


class CredentialState(SQLModel):
    """Credentials gathered by the wizard for one integration instance."""

    access_token: str | None = None
    business_account_id: str | None = None
    phone_number_id: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> "CredentialState":
        """Build a state from a stored payload. Missing or empty keys are unset."""
        payload = payload or {}
        return cls(**{
            field: payload.get(key) or None
            for field, key in PAYLOAD_KEYS.items()
        })

    def to_payload(self) -> dict[str, str]:
        return {
            key: getattr(self, field)
            for field, key in PAYLOAD_KEYS.items()
            if getattr(self, field)
        }

    def merged(self, patch: StatePatch) -> "CredentialState":
        """Return a new state with the patch applied (shallow merge)."""
        base = {} if patch.reset else self.model_dump()
        for field in patch.clear:
            base.pop(field, None)
        base.update(patch.values())
        return CredentialState(**base)

    @property
    def is_complete(self) -> bool:
        return bool(
            self.access_token and self.business_account_id and self.phone_number_id
        )


class CredentialStateRecord(SQLModel, table=True):
    """Persisted credential state, one row per integration instance.

    SECURITY NOTES:
    - The access token is stored as issued; never log the payload
    """

    __tablename__ = "credential_state"

    integration_id: str = Field(
        primary_key=True,
        max_length=255,
        description="Integration instance identifier",
    )
    payload: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Credential fields keyed by platform names",
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"onupdate": utc_now},
        description="Last update timestamp (UTC)",
    )


class CredentialStateRead(SQLModel):
    """Operator view of the persisted state (access token masked)."""

    integration_id: str
    access_token: str | None = None
    business_account_id: str | None = None
    phone_number_id: str | None = None
    configured_identifier: str | None = None
    complete: bool = False

    @classmethod
    def from_state(
        cls,
        integration_id: str,
        state: CredentialState,
        configured_identifier: str | None = None,
    ) -> "CredentialStateRead":
        return cls(
            integration_id=integration_id,
            access_token=(
                mask_credential_value(state.access_token)
                if state.access_token
                else None
            ),
            business_account_id=state.business_account_id,
            phone_number_id=state.phone_number_id,
            configured_identifier=configured_identifier,
            complete=state.is_complete,
        )
