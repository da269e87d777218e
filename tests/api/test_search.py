from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import DAY_MS, NOW, seed_credential
from trustcred.ledger.client import InMemoryLedgerClient
from trustcred.repos.metadata_repo import InMemoryMetadataRepo


def _seed(ledger: InMemoryLedgerClient, repo: InMemoryMetadataRepo, n: int) -> list[str]:
    return [
        seed_credential(ledger, repo, f"search-{i}", issued_at=NOW - i * DAY_MS)
        for i in range(n)
    ]


def test_search_returns_newest_first_with_pagination(
    client: TestClient, ledger: InMemoryLedgerClient, repo: InMemoryMetadataRepo
) -> None:
    ids = _seed(ledger, repo, 3)

    resp = client.get("/api/v1/search/credentials", params={"limit": 2})

    assert resp.status_code == 200
    body = resp.json()
    assert [c["credentialId"] for c in body["data"]["credentials"]] == ids[:2]
    assert body["data"]["total"] == 3
    assert body["pagination"] == {"limit": 2, "offset": 0, "total": 3, "hasMore": True}


def test_search_last_page(
    client: TestClient, ledger: InMemoryLedgerClient, repo: InMemoryMetadataRepo
) -> None:
    ids = _seed(ledger, repo, 3)
    body = client.get(
        "/api/v1/search/credentials", params={"limit": 2, "offset": 2}
    ).json()
    assert [c["credentialId"] for c in body["data"]["credentials"]] == ids[2:]
    assert body["pagination"]["hasMore"] is False


def test_search_by_issuer_and_schema(
    client: TestClient, ledger: InMemoryLedgerClient, repo: InMemoryMetadataRepo
) -> None:
    _seed(ledger, repo, 2)
    by_issuer = client.get("/api/v1/search/credentials", params={"issuer": "university"})
    assert by_issuer.json()["data"]["total"] == 2

    by_schema = client.get("/api/v1/search/credentials", params={"schema": "Master"})
    assert by_schema.json()["data"]["total"] == 0


def test_search_validates_parameters(client: TestClient) -> None:
    bad = (
        {"issuer": "a"},
        {"schema": "x" * 101},
        {"limit": 0},
        {"limit": 101},
        {"offset": -1},
    )
    for params in bad:
        resp = client.get("/api/v1/search/credentials", params=params)
        assert resp.status_code == 400, params
        assert resp.json()["error"] == "Validation Error"


def test_search_store_outage_is_500(
    client: TestClient, repo: InMemoryMetadataRepo
) -> None:
    repo.available = False
    resp = client.get("/api/v1/search/credentials")
    assert resp.status_code == 500
    assert resp.json()["success"] is False
