"""Cache-checked reads of credential records from the ledger.

get_credential(id):
  1. validate the id (64 hex chars), InvalidArgument otherwise
  2. credential:{id} in cache → return it
  3. read-only `get-credential` call → normalize → cache 300s → return
  4. ledger failure → the configured LedgerFallback decides

A failed call is never retried; the fallback either raises
LedgerUnavailable or hands back a synthetic record for local development.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Protocol

from trustcred.core.clock import Clock, now_ms
from trustcred.core.errors import InvalidArgument, LedgerUnavailable
from trustcred.core.metrics import LEDGER_CALLS
from trustcred.ledger import clarity
from trustcred.ledger.client import LedgerClient
from trustcred.models.credential import Credential
from trustcred.services.cache import (
    CREDENTIAL_TTL_SECONDS,
    ResilientCache,
    credential_key,
    verification_key,
)

logger = logging.getLogger(__name__)

_CREDENTIAL_ID_RE = re.compile(r"[0-9a-fA-F]{64}")

_DAY_MS = 86_400_000
_YEAR_MS = 365 * _DAY_MS


def normalize_credential_id(raw: object) -> str:
    """Return the lower-cased id, or raise InvalidArgument."""
    if not isinstance(raw, str) or not _CREDENTIAL_ID_RE.fullmatch(raw):
        raise InvalidArgument(
            "Credential ID must be a 64-character hexadecimal string"
        )
    return raw.lower()


# ---------------------------------------------------------------------------
# Fallback strategies for an unreachable ledger
# ---------------------------------------------------------------------------


class LedgerFallback(Protocol):
    def on_ledger_error(
        self, credential_id: str, error: LedgerUnavailable
    ) -> Credential: ...


class FailOnLedgerError:
    """Production behaviour: surface the failure to the caller."""

    def on_ledger_error(
        self, credential_id: str, error: LedgerUnavailable
    ) -> Credential:
        raise error


class MockCredentialFallback:
    """Development behaviour: answer with a fixed synthetic credential.

    The record is issued a day ago, expires in a year and is not revoked,
    so the rest of the pipeline can be exercised without a Stacks node.
    """

    def __init__(self, clock: Clock = now_ms) -> None:
        self._clock = clock

    def on_ledger_error(
        self, credential_id: str, error: LedgerUnavailable
    ) -> Credential:
        now = self._clock()
        logger.warning(
            "Ledger unavailable, serving mock credential: %s",
            error,
            extra={"credential_id": credential_id},
        )
        return Credential(
            credential_id=credential_id,
            issuer="ST1SAMPLE...ISSUER",
            recipient="ST1SAMPLE...RECIPIENT",
            schema_id="schema-123",
            issued_at=now - _DAY_MS,
            expires_at=now + _YEAR_MS,
            revoked=False,
            revoked_at=None,
            data_hash="abc123def456",
            metadata_uri=f"https://ipfs.io/ipfs/{credential_id}",
            valid=True,
        )


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LedgerHealth:
    healthy: bool
    network: str
    latency_ms: int | None = None


def _field(data: dict[str, Any], kebab: str) -> Any:
    """Read a tuple field by its Clarity (kebab-case) or camelCase name."""
    if kebab in data:
        return data[kebab]
    head, *rest = kebab.split("-")
    camel = head + "".join(part.title() for part in rest)
    return data.get(camel)


def _required(data: dict[str, Any], kebab: str) -> Any:
    value = _field(data, kebab)
    if value is None:
        raise KeyError(kebab)
    return value


def _optional_int(value: Any) -> int | None:
    return int(value) if value is not None else None


class LedgerReader:
    def __init__(
        self,
        client: LedgerClient,
        cache: ResilientCache,
        fallback: LedgerFallback,
        *,
        clock: Clock = now_ms,
    ) -> None:
        self._client = client
        self._cache = cache
        self._fallback = fallback
        self._clock = clock

    async def get_credential(self, credential_id: str) -> Credential | None:
        credential_id = normalize_credential_id(credential_id)
        key = credential_key(credential_id)

        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug(
                "Credential served from cache", extra={"credential_id": credential_id}
            )
            return Credential.from_json(cached)

        logger.info(
            "Fetching credential from ledger",
            extra={"credential_id": credential_id, "ledger_function": "get-credential"},
        )
        try:
            raw = await self._client.call_read_only(
                "get-credential", [clarity.buffer_cv(bytes.fromhex(credential_id))]
            )
        except LedgerUnavailable as exc:
            logger.error(
                "Ledger read failed: %s",
                exc,
                extra={"credential_id": credential_id, "ledger_function": "get-credential"},
            )
            LEDGER_CALLS.labels(function="get-credential", outcome="error").inc()
            credential = self._fallback.on_ledger_error(credential_id, exc)
            LEDGER_CALLS.labels(function="get-credential", outcome="fallback").inc()
            return credential

        if isinstance(raw, clarity.ResponseOk):
            raw = raw.value
        if raw is None or isinstance(raw, clarity.ResponseErr):
            LEDGER_CALLS.labels(function="get-credential", outcome="not_found").inc()
            logger.info(
                "Credential not found on ledger", extra={"credential_id": credential_id}
            )
            return None

        try:
            credential = self._normalize(credential_id, raw)
        except (KeyError, TypeError, ValueError) as exc:
            LEDGER_CALLS.labels(function="get-credential", outcome="error").inc()
            raise LedgerUnavailable(
                f"unexpected get-credential result shape: {exc}"
            ) from exc

        await self._cache.set(key, credential.to_json(), CREDENTIAL_TTL_SECONDS)
        LEDGER_CALLS.labels(function="get-credential", outcome="ok").inc()
        return credential

    async def credential_exists(self, credential_id: str) -> bool:
        try:
            return await self.get_credential(credential_id) is not None
        except LedgerUnavailable:
            logger.warning(
                "Existence check failed", extra={"credential_id": credential_id}
            )
            return False

    async def health_check(self) -> LedgerHealth:
        start = time.monotonic()
        try:
            result = await self._client.call_read_only("get-contract-info", [])
        except LedgerUnavailable as exc:
            logger.error("Ledger health check failed: %s", exc)
            return LedgerHealth(healthy=False, network=self._client.network)

        latency_ms = round((time.monotonic() - start) * 1000)
        healthy = result is not None and not isinstance(result, clarity.ResponseErr)
        return LedgerHealth(
            healthy=healthy, network=self._client.network, latency_ms=latency_ms
        )

    def network_info(self) -> dict[str, str]:
        return {
            "network": self._client.network,
            "contractAddress": getattr(self._client, "contract_address", ""),
        }

    async def invalidate(self, credential_id: str) -> None:
        credential_id = normalize_credential_id(credential_id)
        await self._cache.delete(credential_key(credential_id))
        await self._cache.delete(verification_key(credential_id))
        logger.info("Cache invalidated", extra={"credential_id": credential_id})

    def _normalize(self, credential_id: str, data: dict[str, Any]) -> Credential:
        revoked = bool(_field(data, "revoked"))
        expires_at = _optional_int(_field(data, "expires-at"))
        now = self._clock()
        return Credential(
            credential_id=credential_id,
            issuer=str(_required(data, "issuer")),
            recipient=str(_required(data, "recipient")),
            schema_id=str(_required(data, "schema-id")),
            issued_at=int(_field(data, "issued-at") or 0),
            expires_at=expires_at,
            revoked=revoked,
            revoked_at=_optional_int(_field(data, "revoked-at")),
            data_hash=str(_field(data, "data-hash") or ""),
            metadata_uri=str(_field(data, "metadata-uri") or ""),
            valid=not revoked and (expires_at is None or now <= expires_at),
        )
