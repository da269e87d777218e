from __future__ import annotations

import hashlib
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import trustcred` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trustcred.ledger.client import InMemoryLedgerClient  # noqa: E402
from trustcred.main import create_app  # noqa: E402
from trustcred.models.metadata import (  # noqa: E402
    CredentialRecord,
    IssuerRecord,
    SchemaRecord,
)
from trustcred.repos.metadata_repo import InMemoryMetadataRepo  # noqa: E402
from trustcred.services.cache import InMemoryCacheService, ResilientCache  # noqa: E402
from trustcred.services.container import ServiceContainer  # noqa: E402
from trustcred.services.rate_limiter import InMemoryRateLimiter  # noqa: E402

# 2025-10-09T08:53:20Z: every service in the test container sees this time.
NOW = 1_760_000_000_000
DAY_MS = 86_400_000

ISSUER = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
RECIPIENT = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"
SCHEMA_ID = "0x" + "5c" * 32


def cred_id(label: str) -> str:
    """Deterministic 64-hex credential id."""
    return hashlib.sha256(label.encode()).hexdigest()


def ledger_record(
    *,
    issuer: str = ISSUER,
    recipient: str = RECIPIENT,
    schema_id: str = SCHEMA_ID,
    issued_at: int = NOW - 30 * DAY_MS,
    expires_at: int | None = NOW + 365 * DAY_MS,
    revoked: bool = False,
    revoked_at: int | None = None,
) -> dict[str, Any]:
    """A get-credential tuple as the contract returns it."""
    return {
        "issuer": issuer,
        "recipient": recipient,
        "schema-id": schema_id,
        "data-hash": "0x" + "d4" * 32,
        "metadata-uri": "ipfs://bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi",
        "issued-at": issued_at,
        "expires-at": expires_at,
        "revoked": revoked,
        "revoked-at": revoked_at,
    }


@pytest.fixture
def ledger() -> InMemoryLedgerClient:
    return InMemoryLedgerClient(network="testnet")


class FakeClock:
    """Monotonic seconds that only move when a test advances them."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def cache_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_backend(cache_clock: FakeClock) -> InMemoryCacheService:
    return InMemoryCacheService(clock=cache_clock)


@pytest.fixture
def repo() -> InMemoryMetadataRepo:
    repo = InMemoryMetadataRepo()
    repo.add_issuer(
        IssuerRecord(
            name="Stacks University",
            type="university",
            verified=True,
            stacks_address=ISSUER,
        )
    )
    repo.add_schema(
        SchemaRecord(
            id=SCHEMA_ID,
            name="Bachelor of Science",
            version="2.1",
            description="Undergraduate degree",
        )
    )
    return repo


@pytest.fixture
def container(
    ledger: InMemoryLedgerClient,
    cache_backend: InMemoryCacheService,
    repo: InMemoryMetadataRepo,
) -> ServiceContainer:
    return ServiceContainer.assemble(
        ledger_client=ledger,
        cache=ResilientCache(cache_backend),
        repo=repo,
        rate_limiter=InMemoryRateLimiter(),
        clock=lambda: NOW,
        base_url="https://verify.example.org",
    )


@pytest.fixture
def client(container: ServiceContainer) -> Iterator[TestClient]:
    with TestClient(create_app(container)) as c:
        yield c


def seed_credential(
    ledger: InMemoryLedgerClient,
    repo: InMemoryMetadataRepo,
    label: str,
    **record: Any,
) -> str:
    """Put a credential on the in-memory ledger and its off-chain copy in the repo."""
    credential_id = cred_id(label)
    data = ledger_record(**record)
    ledger.put(credential_id, data)
    repo.add_credential(
        CredentialRecord(
            blockchain_id=credential_id,
            issuer_address=data["issuer"],
            schema_id=data["schema-id"],
            recipient_address=data["recipient"],
            metadata_uri=data["metadata-uri"],
            data_hash=data["data-hash"],
            status="revoked" if data["revoked"] else "active",
            issued_at=data["issued-at"],
            expires_at=data["expires-at"],
        )
    )
    return credential_id
