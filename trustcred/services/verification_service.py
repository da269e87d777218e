"""Credential verification: ledger state merged with off-chain metadata.

verify(id):
  verification:{id} cached     → return it unchanged
  not on the ledger            → not-found result (cached 60s)
  on the ledger                → compute expired/valid, enrich from the
                                 metadata store, audit, cache 60s

Failure policy:
  - ledger failures propagate (LedgerUnavailable), except when the
    reader's fallback supplies a mock record
  - metadata-store failures only cost enrichment: placeholders are used
  - the audit write is a best-effort side channel, never propagated
  - batch items are isolated; one failure does not affect its siblings
"""

from __future__ import annotations

import asyncio
import json
import logging

from trustcred.core.clock import Clock, now_ms
from trustcred.core.errors import CredentialNotFound, InvalidArgument, StoreDegraded
from trustcred.core.metrics import AUDIT_LOG_FAILURES, STORE_DEGRADED, VERIFICATIONS
from trustcred.models.credential import Credential
from trustcred.models.metadata import CredentialRecord, IssuerRecord, SchemaRecord
from trustcred.models.verification import (
    SOURCE_HYBRID,
    BatchResult,
    BatchSummary,
    IssuerInfo,
    MetadataInfo,
    PublicCredentialInfo,
    RecipientInfo,
    SchemaInfo,
    SearchResult,
    VerificationResult,
)
from trustcred.repos.metadata_repo import MetadataRepo, VerificationLogEntry
from trustcred.services import qr_service
from trustcred.services.cache import (
    VERIFICATION_TTL_SECONDS,
    ResilientCache,
    verification_key,
)
from trustcred.services.ledger_reader import LedgerReader, normalize_credential_id

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 50


class VerificationService:
    def __init__(
        self,
        reader: LedgerReader,
        repo: MetadataRepo,
        cache: ResilientCache,
        *,
        clock: Clock = now_ms,
    ) -> None:
        self._reader = reader
        self._repo = repo
        self._cache = cache
        self._clock = clock

    # ------------------------------------------------------------------
    # Single verification
    # ------------------------------------------------------------------

    async def verify(
        self, credential_id: str, *, method: str = "api"
    ) -> VerificationResult:
        credential_id = normalize_credential_id(credential_id)
        key = verification_key(credential_id)

        cached = await self._cache.get(key)
        if cached is not None:
            result = VerificationResult.from_json(cached)
            if result.exists:
                await self._record_audit(result, method)
            return result

        credential = await self._reader.get_credential(credential_id)
        if credential is None:
            result = VerificationResult.not_found(credential_id, self._clock())
            VERIFICATIONS.labels(outcome="not_found").inc()
        else:
            result = await self._merge(credential)
            VERIFICATIONS.labels(outcome="valid" if result.valid else "invalid").inc()
            await self._record_audit(result, method)
            logger.info(
                "Credential verification completed valid=%s revoked=%s expired=%s",
                result.valid,
                result.revoked,
                result.expired,
                extra={"credential_id": credential_id},
            )

        await self._cache.set(key, result.to_json(), VERIFICATION_TTL_SECONDS)
        return result

    async def _merge(self, credential: Credential) -> VerificationResult:
        now = self._clock()
        expired = credential.expires_at is not None and now > credential.expires_at
        valid = credential.valid and not credential.revoked and not expired

        record = await self._lookup_credential(credential.credential_id)
        issuer = await self._lookup_issuer(credential.issuer)
        schema_id = credential.schema_id or (record.schema_id if record else None)
        schema = await self._lookup_schema(schema_id) if schema_id else None

        return VerificationResult(
            credential_id=credential.credential_id,
            exists=True,
            valid=valid,
            revoked=credential.revoked,
            expired=expired,
            verification_timestamp=now,
            source=SOURCE_HYBRID,
            issuer=IssuerInfo(
                address=credential.issuer,
                name=issuer.name if issuer else "Unknown Issuer",
                verified=issuer.verified if issuer else False,
                type=issuer.type if issuer else "unknown",
            ),
            recipient=RecipientInfo(
                address=credential.recipient
                or (record.recipient_address if record else "")
            ),
            metadata=MetadataInfo(
                name=schema.name if schema else None,
                description=schema.description if schema else None,
                issued_at=credential.issued_at,
                expires_at=credential.expires_at,
                revoked_at=credential.revoked_at if credential.revoked else None,
                metadata_uri=credential.metadata_uri
                or (record.metadata_uri if record else ""),
                data_hash=credential.data_hash or (record.data_hash if record else ""),
            ),
            schema=(
                SchemaInfo(id=schema.id, name=schema.name, version=schema.version)
                if schema
                else None
            ),
        )

    # Enrichment lookups: a degraded store yields None, never an error.

    async def _lookup_credential(self, credential_id: str) -> CredentialRecord | None:
        try:
            return await self._repo.get_credential(credential_id)
        except StoreDegraded as exc:
            self._degraded("credentials", exc, credential_id)
            return None

    async def _lookup_issuer(self, address: str) -> IssuerRecord | None:
        try:
            return await self._repo.get_issuer(address)
        except StoreDegraded as exc:
            self._degraded("organizations", exc)
            return None

    async def _lookup_schema(self, schema_id: str) -> SchemaRecord | None:
        try:
            return await self._repo.get_schema(schema_id)
        except StoreDegraded as exc:
            self._degraded("credential_schemas", exc)
            return None

    def _degraded(
        self, table: str, exc: Exception, credential_id: str | None = None
    ) -> None:
        logger.warning(
            "Metadata lookup on %s failed, using placeholders: %s",
            table,
            exc,
            extra={"credential_id": credential_id},
        )
        STORE_DEGRADED.labels(store="database").inc()

    async def _record_audit(self, result: VerificationResult, method: str) -> None:
        """Write the verification_logs row; failures are reported, not raised."""
        entry = VerificationLogEntry(
            credential_id=result.credential_id,
            verification_result=json.dumps(
                {
                    "valid": result.valid,
                    "revoked": result.revoked,
                    "expired": result.expired,
                    "verificationTimestamp": result.verification_timestamp,
                }
            ),
            verification_method=method,
            verified_at=self._clock(),
        )
        try:
            await self._repo.log_verification(entry)
        except Exception:
            AUDIT_LOG_FAILURES.inc()
            logger.exception(
                "Failed to log verification",
                extra={"credential_id": result.credential_id},
            )

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    async def verify_batch(self, credential_ids: list[str]) -> BatchResult:
        if not credential_ids:
            raise InvalidArgument("At least one credential ID is required")
        if len(credential_ids) > MAX_BATCH_SIZE:
            raise InvalidArgument(
                f"Maximum {MAX_BATCH_SIZE} credentials can be verified at once"
            )

        started = self._clock()
        logger.info("Starting batch verification count=%d", len(credential_ids))

        outcomes = await asyncio.gather(
            *(self.verify(cid, method="batch") for cid in credential_ids),
            return_exceptions=True,
        )

        results: list[VerificationResult] = []
        for cid, outcome in zip(credential_ids, outcomes):
            if isinstance(outcome, VerificationResult):
                results.append(outcome)
                continue
            if not isinstance(outcome, Exception):
                # CancelledError and friends are not per-item failures.
                raise outcome
            logger.error(
                "Batch verification item failed: %s",
                outcome,
                extra={"credential_id": cid},
            )
            VERIFICATIONS.labels(outcome="error").inc()
            results.append(VerificationResult.error(cid, self._clock()))

        summary = BatchSummary.of(results)
        logger.info(
            "Batch verification completed total=%d valid=%d invalid=%d not_found=%d "
            "(%dms)",
            summary.total,
            summary.valid,
            summary.invalid,
            summary.not_found,
            self._clock() - started,
        )
        return BatchResult(results=results, summary=summary, timestamp=self._clock())

    # ------------------------------------------------------------------
    # QR, public view, search
    # ------------------------------------------------------------------

    async def verify_from_qr(self, qr_data: str) -> VerificationResult:
        credential_id = qr_service.parse_payload(qr_data)
        logger.info(
            "Verifying credential from QR code", extra={"credential_id": credential_id}
        )
        return await self.verify(credential_id, method="qr")

    async def public_info(self, credential_id: str) -> PublicCredentialInfo:
        result = await self.verify(credential_id)
        if not result.exists:
            raise CredentialNotFound(
                f"credential {result.credential_id} does not exist"
            )
        return PublicCredentialInfo.from_result(result)

    async def search_public(
        self,
        *,
        issuer: str | None = None,
        schema: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> SearchResult:
        credentials, total = await self._repo.search_public(
            issuer=issuer, schema=schema, limit=limit, offset=offset
        )
        logger.info(
            "Public credential search completed issuer=%s schema=%s results=%d total=%d",
            issuer,
            schema,
            len(credentials),
            total,
        )
        return SearchResult(credentials=credentials, total=total)

    async def invalidate(self, credential_id: str) -> None:
        await self._reader.invalidate(credential_id)
