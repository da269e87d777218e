from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from trustcred.core.errors import StoreDegraded
from trustcred.models.metadata import CredentialRecord, IssuerRecord, SchemaRecord
from trustcred.models.verification import PublicCredentialInfo


@dataclass(frozen=True, slots=True)
class VerificationLogEntry:
    credential_id: str
    verification_result: str  # JSON
    verification_method: str
    verified_at: int


class MetadataRepo(Protocol):
    """Off-chain metadata used to enrich ledger records.

    Implementations raise StoreDegraded when the backing store fails.
    """

    async def get_credential(self, blockchain_id: str) -> CredentialRecord | None: ...
    async def get_issuer(self, stacks_address: str) -> IssuerRecord | None: ...
    async def get_schema(self, schema_id: str) -> SchemaRecord | None: ...
    async def log_verification(self, entry: VerificationLogEntry) -> None: ...
    async def search_public(
        self,
        *,
        issuer: str | None,
        schema: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[PublicCredentialInfo], int]: ...
    async def ping(self) -> bool: ...


class InMemoryMetadataRepo:
    """Dict-backed metadata store for dev and tests.

    Set `available = False` to make every call raise StoreDegraded.
    """

    def __init__(self) -> None:
        self.available = True
        self.logs: list[VerificationLogEntry] = []
        self._credentials: dict[str, CredentialRecord] = {}
        self._issuers: dict[str, IssuerRecord] = {}
        self._schemas: dict[str, SchemaRecord] = {}

    def add_issuer(self, issuer: IssuerRecord) -> None:
        self._issuers[issuer.stacks_address] = issuer

    def add_schema(self, schema: SchemaRecord) -> None:
        self._schemas[schema.id] = schema

    def add_credential(self, record: CredentialRecord) -> None:
        self._credentials[record.blockchain_id] = record

    def clear(self) -> None:
        self.available = True
        self.logs.clear()
        self._credentials.clear()
        self._issuers.clear()
        self._schemas.clear()

    def _check(self) -> None:
        if not self.available:
            raise StoreDegraded("metadata store unavailable")

    async def get_credential(self, blockchain_id: str) -> CredentialRecord | None:
        self._check()
        return self._credentials.get(blockchain_id)

    async def get_issuer(self, stacks_address: str) -> IssuerRecord | None:
        self._check()
        return self._issuers.get(stacks_address)

    async def get_schema(self, schema_id: str) -> SchemaRecord | None:
        self._check()
        return self._schemas.get(schema_id)

    async def log_verification(self, entry: VerificationLogEntry) -> None:
        self._check()
        self.logs.append(entry)

    async def search_public(
        self,
        *,
        issuer: str | None,
        schema: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[PublicCredentialInfo], int]:
        self._check()
        matches: list[PublicCredentialInfo] = []
        for record in self._credentials.values():
            if record.status != "active":
                continue
            org = self._issuers.get(record.issuer_address)
            if org is None:
                continue
            if issuer and not (
                issuer.lower() in org.name.lower() or issuer == org.stacks_address
            ):
                continue
            sch = self._schemas.get(record.schema_id) if record.schema_id else None
            if schema and (sch is None or schema.lower() not in sch.name.lower()):
                continue
            matches.append(
                PublicCredentialInfo(
                    credential_id=record.blockchain_id,
                    issuer_name=org.name,
                    issuer_type=org.type,
                    issuer_verified=org.verified,
                    schema_name=sch.name if sch else "Unknown Schema",
                    schema_version=sch.version if sch else "1.0",
                    issued_at=record.issued_at,
                    expires_at=record.expires_at,
                    status=record.status,
                )
            )
        matches.sort(key=lambda c: c.issued_at, reverse=True)
        return matches[offset : offset + limit], len(matches)

    async def ping(self) -> bool:
        return self.available
