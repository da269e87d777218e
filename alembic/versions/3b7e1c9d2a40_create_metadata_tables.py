"""create metadata tables

Revision ID: 3b7e1c9d2a40
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7e1c9d2a40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("stacks_address", sa.String(length=128), nullable=False),
        sa.UniqueConstraint("stacks_address"),
    )
    op.create_table(
        "credential_schemas",
        sa.Column("id", sa.String(length=130), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("version", sa.String(length=32), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("schema_definition", sa.Text(), nullable=True),
    )
    op.create_table(
        "credentials",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("blockchain_id", sa.String(length=64), nullable=False),
        sa.Column(
            "issuer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("organizations.id"),
            nullable=False,
        ),
        sa.Column(
            "schema_id",
            sa.String(length=130),
            sa.ForeignKey("credential_schemas.id"),
            nullable=True,
        ),
        sa.Column("recipient_address", sa.String(length=128), nullable=False),
        sa.Column("metadata_uri", sa.Text(), nullable=False, server_default=""),
        sa.Column("data_hash", sa.String(length=130), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        sa.Column("issued_at", sa.BigInteger(), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=True),
        sa.UniqueConstraint("blockchain_id"),
    )
    op.create_index("ix_credentials_status_issued_at", "credentials", ["status", "issued_at"])
    op.create_table(
        "verification_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "credential_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("credentials.id"),
            nullable=True,
        ),
        sa.Column("verification_result", sa.Text(), nullable=False),
        sa.Column("verification_method", sa.String(length=32), nullable=False),
        sa.Column("verified_at", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_verification_logs_credential_id", "verification_logs", ["credential_id"])


def downgrade() -> None:
    op.drop_index("ix_verification_logs_credential_id", table_name="verification_logs")
    op.drop_table("verification_logs")
    op.drop_index("ix_credentials_status_issued_at", table_name="credentials")
    op.drop_table("credentials")
    op.drop_table("credential_schemas")
    op.drop_table("organizations")
