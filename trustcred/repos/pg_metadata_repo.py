"""PostgreSQL implementation of MetadataRepo."""

from __future__ import annotations

from sqlalchemy import func, insert, or_, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trustcred.core.errors import StoreDegraded
from trustcred.db.tables import (
    CredentialRow,
    CredentialSchemaRow,
    OrganizationRow,
    VerificationLogRow,
)
from trustcred.models.metadata import CredentialRecord, IssuerRecord, SchemaRecord
from trustcred.models.verification import PublicCredentialInfo
from trustcred.repos.metadata_repo import VerificationLogEntry

# asyncpg connection failures surface as OSError before SQLAlchemy wraps them.
_DB_ERRORS = (SQLAlchemyError, OSError)


class PgMetadataRepo:
    """Satisfies the MetadataRepo Protocol using PostgreSQL via SQLAlchemy.

    Each call opens its own short-lived session: verification runs outside
    any request-scoped transaction, and batch items run concurrently.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_credential(self, blockchain_id: str) -> CredentialRecord | None:
        stmt = (
            select(CredentialRow, OrganizationRow.stacks_address)
            .join(OrganizationRow, CredentialRow.issuer_id == OrganizationRow.id)
            .where(CredentialRow.blockchain_id == blockchain_id)
        )
        try:
            async with self._session_factory() as session:
                result = (await session.execute(stmt)).first()
        except _DB_ERRORS as exc:
            raise StoreDegraded(f"credentials lookup failed: {exc}") from exc
        if result is None:
            return None
        row, issuer_address = result
        return _row_to_credential(row, issuer_address)

    async def get_issuer(self, stacks_address: str) -> IssuerRecord | None:
        stmt = select(OrganizationRow).where(
            OrganizationRow.stacks_address == stacks_address
        )
        try:
            async with self._session_factory() as session:
                row = (await session.execute(stmt)).scalar_one_or_none()
        except _DB_ERRORS as exc:
            raise StoreDegraded(f"organizations lookup failed: {exc}") from exc
        if row is None:
            return None
        return IssuerRecord(
            name=row.name,
            type=row.type,
            verified=row.verified,
            stacks_address=row.stacks_address,
        )

    async def get_schema(self, schema_id: str) -> SchemaRecord | None:
        stmt = select(CredentialSchemaRow).where(CredentialSchemaRow.id == schema_id)
        try:
            async with self._session_factory() as session:
                row = (await session.execute(stmt)).scalar_one_or_none()
        except _DB_ERRORS as exc:
            raise StoreDegraded(f"credential_schemas lookup failed: {exc}") from exc
        if row is None:
            return None
        return SchemaRecord(
            id=row.id, name=row.name, version=row.version, description=row.description
        )

    async def log_verification(self, entry: VerificationLogEntry) -> None:
        credential_pk = (
            select(CredentialRow.id)
            .where(CredentialRow.blockchain_id == entry.credential_id)
            .scalar_subquery()
        )
        stmt = insert(VerificationLogRow).values(
            credential_id=credential_pk,
            verification_result=entry.verification_result,
            verification_method=entry.verification_method,
            verified_at=entry.verified_at,
        )
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(stmt)
        except _DB_ERRORS as exc:
            raise StoreDegraded(f"verification_logs insert failed: {exc}") from exc

    async def search_public(
        self,
        *,
        issuer: str | None,
        schema: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[PublicCredentialInfo], int]:
        stmt = (
            select(
                CredentialRow.blockchain_id,
                CredentialRow.issued_at,
                CredentialRow.expires_at,
                CredentialRow.status,
                OrganizationRow.name.label("issuer_name"),
                OrganizationRow.type.label("issuer_type"),
                OrganizationRow.verified.label("issuer_verified"),
                CredentialSchemaRow.name.label("schema_name"),
                CredentialSchemaRow.version.label("schema_version"),
                func.count().over().label("total_count"),
            )
            .join(OrganizationRow, CredentialRow.issuer_id == OrganizationRow.id)
            .outerjoin(
                CredentialSchemaRow, CredentialRow.schema_id == CredentialSchemaRow.id
            )
            .where(CredentialRow.status == "active")
        )
        if issuer:
            stmt = stmt.where(
                or_(
                    OrganizationRow.name.ilike(f"%{issuer}%"),
                    OrganizationRow.stacks_address == issuer,
                )
            )
        if schema:
            stmt = stmt.where(CredentialSchemaRow.name.ilike(f"%{schema}%"))
        stmt = stmt.order_by(CredentialRow.issued_at.desc()).limit(limit).offset(offset)

        try:
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).all()
        except _DB_ERRORS as exc:
            raise StoreDegraded(f"credential search failed: {exc}") from exc

        credentials = [
            PublicCredentialInfo(
                credential_id=r.blockchain_id,
                issuer_name=r.issuer_name,
                issuer_type=r.issuer_type,
                issuer_verified=r.issuer_verified,
                schema_name=r.schema_name or "Unknown Schema",
                schema_version=r.schema_version or "1.0",
                issued_at=r.issued_at,
                expires_at=r.expires_at,
                status=r.status,
            )
            for r in rows
        ]
        total = int(rows[0].total_count) if rows else 0
        return credentials, total

    async def ping(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except _DB_ERRORS:
            return False
        return True


def _row_to_credential(row: CredentialRow, issuer_address: str) -> CredentialRecord:
    return CredentialRecord(
        blockchain_id=row.blockchain_id,
        issuer_address=issuer_address,
        schema_id=row.schema_id,
        recipient_address=row.recipient_address,
        metadata_uri=row.metadata_uri or "",
        data_hash=row.data_hash or "",
        status=row.status,
        issued_at=row.issued_at,
        expires_at=row.expires_at,
    )
