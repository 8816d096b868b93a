"""Integration configuration entity.

Records the identity the owning platform routes incoming webhooks by.
During the wizard it is first the integration instance id, then the
WhatsApp Business Account id once the flow completes.
"""

from datetime import datetime

from sqlmodel import Field, SQLModel

from waba_wizard.models.credential_state import utc_now


class IntegrationConfiguration(SQLModel, table=True):
    """Configuration acknowledgment of an integration instance."""

    __tablename__ = "integration_configuration"

    integration_id: str = Field(
        primary_key=True,
        max_length=255,
        description="Integration instance identifier",
    )
    identifier: str = Field(
        max_length=255,
        index=True,
        description="Externally visible identity used for webhook routing",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"onupdate": utc_now},
        description="Last update timestamp (UTC)",
    )
