"""Verification results and the shapes derived from them.

Results are plain frozen dataclasses.  `to_dict()` produces the camelCase
JSON the API returns, and the same dict is what the cache stores, so a
cached result round-trips to an identical object.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

SOURCE_BLOCKCHAIN = "blockchain"
SOURCE_HYBRID = "hybrid"


@dataclass(frozen=True, slots=True)
class IssuerInfo:
    address: str = ""
    name: str = ""
    verified: bool = False
    type: str = ""


@dataclass(frozen=True, slots=True)
class RecipientInfo:
    address: str = ""


@dataclass(frozen=True, slots=True)
class MetadataInfo:
    name: str | None = None
    description: str | None = None
    issued_at: int = 0
    expires_at: int | None = None
    revoked_at: int | None = None
    metadata_uri: str = ""
    data_hash: str = ""


@dataclass(frozen=True, slots=True)
class SchemaInfo:
    id: str
    name: str
    version: str


@dataclass(frozen=True, slots=True)
class VerificationResult:
    credential_id: str
    exists: bool
    valid: bool
    revoked: bool
    expired: bool
    verification_timestamp: int
    source: str = SOURCE_BLOCKCHAIN
    issuer: IssuerInfo = field(default_factory=IssuerInfo)
    recipient: RecipientInfo = field(default_factory=RecipientInfo)
    metadata: MetadataInfo = field(default_factory=MetadataInfo)
    schema: SchemaInfo | None = None

    @staticmethod
    def not_found(credential_id: str, now: int) -> VerificationResult:
        return VerificationResult(
            credential_id=credential_id,
            exists=False,
            valid=False,
            revoked=False,
            expired=False,
            verification_timestamp=now,
        )

    @staticmethod
    def error(credential_id: str, now: int) -> VerificationResult:
        """Placeholder for a batch item whose verification raised."""
        return VerificationResult(
            credential_id=credential_id,
            exists=False,
            valid=False,
            revoked=False,
            expired=False,
            verification_timestamp=now,
            issuer=IssuerInfo(name="Error", type="error"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "credentialId": self.credential_id,
            "exists": self.exists,
            "valid": self.valid,
            "revoked": self.revoked,
            "expired": self.expired,
            "issuer": {
                "address": self.issuer.address,
                "name": self.issuer.name,
                "verified": self.issuer.verified,
                "type": self.issuer.type,
            },
            "recipient": {"address": self.recipient.address},
            "metadata": {
                "name": self.metadata.name,
                "description": self.metadata.description,
                "issuedAt": self.metadata.issued_at,
                "expiresAt": self.metadata.expires_at,
                "revokedAt": self.metadata.revoked_at,
                "metadataUri": self.metadata.metadata_uri,
                "dataHash": self.metadata.data_hash,
            },
            "schema": (
                {
                    "id": self.schema.id,
                    "name": self.schema.name,
                    "version": self.schema.version,
                }
                if self.schema is not None
                else None
            ),
            "verificationTimestamp": self.verification_timestamp,
            "source": self.source,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> VerificationResult:
        issuer = data["issuer"]
        meta = data["metadata"]
        schema = data.get("schema")
        return VerificationResult(
            credential_id=data["credentialId"],
            exists=data["exists"],
            valid=data["valid"],
            revoked=data["revoked"],
            expired=data["expired"],
            verification_timestamp=data["verificationTimestamp"],
            source=data["source"],
            issuer=IssuerInfo(
                address=issuer["address"],
                name=issuer["name"],
                verified=issuer["verified"],
                type=issuer["type"],
            ),
            recipient=RecipientInfo(address=data["recipient"]["address"]),
            metadata=MetadataInfo(
                name=meta.get("name"),
                description=meta.get("description"),
                issued_at=meta["issuedAt"],
                expires_at=meta.get("expiresAt"),
                revoked_at=meta.get("revokedAt"),
                metadata_uri=meta["metadataUri"],
                data_hash=meta["dataHash"],
            ),
            schema=(
                SchemaInfo(id=schema["id"], name=schema["name"], version=schema["version"])
                if schema is not None
                else None
            ),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @staticmethod
    def from_json(raw: str) -> VerificationResult:
        return VerificationResult.from_dict(json.loads(raw))


@dataclass(frozen=True, slots=True)
class BatchSummary:
    total: int = 0
    valid: int = 0
    invalid: int = 0
    revoked: int = 0
    expired: int = 0
    not_found: int = 0

    @staticmethod
    def of(results: list[VerificationResult]) -> BatchSummary:
        # `invalid` counts every existing-but-not-valid result, so revoked
        # and expired credentials appear both here and in their own tally.
        valid = invalid = revoked = expired = not_found = 0
        for r in results:
            if r.valid:
                valid += 1
            if r.exists and not r.valid:
                invalid += 1
            if r.revoked:
                revoked += 1
            if r.expired:
                expired += 1
            if not r.exists:
                not_found += 1
        return BatchSummary(
            total=len(results),
            valid=valid,
            invalid=invalid,
            revoked=revoked,
            expired=expired,
            not_found=not_found,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "valid": self.valid,
            "invalid": self.invalid,
            "revoked": self.revoked,
            "expired": self.expired,
            "notFound": self.not_found,
        }


@dataclass(frozen=True, slots=True)
class BatchResult:
    results: list[VerificationResult]
    summary: BatchSummary
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary.to_dict(),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class PublicCredentialInfo:
    """Shareable view of a credential: no addresses, hashes or URIs."""

    credential_id: str
    issuer_name: str
    issuer_type: str
    issuer_verified: bool
    schema_name: str
    schema_version: str
    issued_at: int
    expires_at: int | None
    status: str  # active|revoked|expired

    @staticmethod
    def from_result(result: VerificationResult) -> PublicCredentialInfo:
        if result.revoked:
            status = "revoked"
        elif result.expired:
            status = "expired"
        else:
            status = "active"
        return PublicCredentialInfo(
            credential_id=result.credential_id,
            issuer_name=result.issuer.name,
            issuer_type=result.issuer.type,
            issuer_verified=result.issuer.verified,
            schema_name=result.schema.name if result.schema else "Unknown Schema",
            schema_version=result.schema.version if result.schema else "1.0",
            issued_at=result.metadata.issued_at,
            expires_at=result.metadata.expires_at,
            status=status,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "credentialId": self.credential_id,
            "issuer": {
                "name": self.issuer_name,
                "type": self.issuer_type,
                "verified": self.issuer_verified,
            },
            "schema": {"name": self.schema_name, "version": self.schema_version},
            "issuedAt": self.issued_at,
            "expiresAt": self.expires_at,
            "status": self.status,
        }


@dataclass(frozen=True, slots=True)
class SearchResult:
    credentials: list[PublicCredentialInfo]
    total: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "credentials": [c.to_dict() for c in self.credentials],
            "total": self.total,
        }
