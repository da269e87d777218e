"""SQLAlchemy table definitions for the off-chain metadata store.

The ledger is the source of truth for issuance and revocation; these
tables hold what the contract does not: issuer display data, schema
descriptions, an off-chain copy of each credential for search, and the
verification audit trail.  Timestamps are epoch milliseconds.
"""

from __future__ import annotations

import uuid

from sqlalchemy import BigInteger, Boolean, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from trustcred.db.engine import Base


class OrganizationRow(Base):
    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(
        String(32), nullable=False, default="company"
    )  # university|company|government|nonprofit
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    stacks_address: Mapped[str] = mapped_column(
        String(128), unique=True, nullable=False
    )


class CredentialSchemaRow(Base):
    __tablename__ = "credential_schemas"

    # Matches the on-chain schema id (0x-prefixed buffer hex).
    id: Mapped[str] = mapped_column(String(130), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    version: Mapped[str] = mapped_column(String(32), nullable=False, default="1.0")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    schema_definition: Mapped[str | None] = mapped_column(Text, nullable=True)


class CredentialRow(Base):
    __tablename__ = "credentials"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    blockchain_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    issuer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=False
    )
    schema_id: Mapped[str | None] = mapped_column(
        String(130), ForeignKey("credential_schemas.id"), nullable=True
    )
    recipient_address: Mapped[str] = mapped_column(String(128), nullable=False)
    metadata_uri: Mapped[str] = mapped_column(Text, nullable=False, default="")
    data_hash: Mapped[str] = mapped_column(String(130), nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="active"
    )  # active|revoked|expired
    issued_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class VerificationLogRow(Base):
    __tablename__ = "verification_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    credential_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("credentials.id"), nullable=True
    )
    verification_result: Mapped[str] = mapped_column(Text, nullable=False)
    verification_method: Mapped[str] = mapped_column(
        String(32), nullable=False, default="api"
    )  # api|qr|batch
    verified_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
