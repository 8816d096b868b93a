"""Initial schema

Revision ID: 001
Revises:
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create credential_state table
    op.create_table(
        "credential_state",
        sa.Column("integration_id", sa.String(length=255), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("integration_id"),
    )

    # Create integration_configuration table
    op.create_table(
        "integration_configuration",
        sa.Column("integration_id", sa.String(length=255), nullable=False),
        sa.Column("identifier", sa.String(length=255), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("integration_id"),
    )
    op.create_index(
        op.f("ix_integration_configuration_identifier"),
        "integration_configuration",
        ["identifier"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_integration_configuration_identifier"),
        table_name="integration_configuration",
    )
    op.drop_table("integration_configuration")
    op.drop_table("credential_state")
