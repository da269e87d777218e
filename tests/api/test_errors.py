"""Failure envelope rendering."""

from __future__ import annotations

from dataclasses import replace

from fastapi.testclient import TestClient

from tests.conftest import cred_id
from trustcred.core.config import SETTINGS
from trustcred.ledger.client import InMemoryLedgerClient
from trustcred.main import create_app
from trustcred.services.container import ServiceContainer


def test_unknown_route_uses_envelope(client: TestClient) -> None:
    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Not Found"
    assert set(body) == {"success", "error", "message", "timestamp", "processingTime"}


def test_detailed_messages_outside_prod(
    client: TestClient, ledger: InMemoryLedgerClient
) -> None:
    ledger.available = False
    body = client.get(f"/api/v1/verify/{cred_id('err-dev')}").json()
    assert "offline" in body["message"]


def test_generic_messages_in_prod(
    container: ServiceContainer, ledger: InMemoryLedgerClient
) -> None:
    ledger.available = False
    prod = replace(SETTINGS, app_env="prod", ledger_fallback="fail")
    with TestClient(create_app(container, settings=prod)) as client:
        body = client.get(f"/api/v1/verify/{cred_id('err-prod')}").json()
    assert body["error"] == "Verification Failed"
    assert body["message"] == "Unable to verify credential at this time"


def test_validation_message_names_the_field(client: TestClient) -> None:
    body = client.post("/api/v1/verify/batch", json={}).json()
    assert body["error"] == "Validation Error"
    assert body["message"].startswith("credentialIds")
