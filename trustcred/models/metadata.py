"""Rows of the relational metadata store, as the verification service sees them."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class IssuerRecord:
    name: str
    type: str  # university|company|government|...
    verified: bool
    stacks_address: str = ""


@dataclass(frozen=True, slots=True)
class SchemaRecord:
    id: str
    name: str
    version: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class CredentialRecord:
    """Off-chain copy of an issued credential (`credentials` table)."""

    blockchain_id: str
    issuer_address: str
    schema_id: str | None
    recipient_address: str
    metadata_uri: str
    data_hash: str
    status: str = "active"  # active|revoked|expired
    issued_at: int = 0
    expires_at: int | None = None
