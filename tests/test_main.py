from __future__ import annotations

from dataclasses import replace

from fastapi.testclient import TestClient

from trustcred.core.config import SETTINGS
from trustcred.ledger.client import StacksLedgerClient
from trustcred.main import API_PREFIX, create_app
from trustcred.repos.metadata_repo import InMemoryMetadataRepo
from trustcred.services.cache import InMemoryCacheService
from trustcred.services.ledger_reader import MockCredentialFallback
from trustcred.services.rate_limiter import InMemoryRateLimiter


def test_lifespan_builds_and_tears_down_container() -> None:
    settings = replace(SETTINGS, database_url=None, redis_url=None, ledger_fallback="mock")
    app = create_app(settings=settings)

    with TestClient(app):
        container = app.state.container
        assert isinstance(container.ledger_client, StacksLedgerClient)
        assert isinstance(container.repo, InMemoryMetadataRepo)
        assert isinstance(container.cache.backend, InMemoryCacheService)
        assert isinstance(container.rate_limiter, InMemoryRateLimiter)
        assert isinstance(container.reader._fallback, MockCredentialFallback)

    assert app.state.container is None


def test_injected_container_is_left_open(container) -> None:
    app = create_app(container)
    with TestClient(app):
        pass
    assert app.state.container is container
    assert container._closed is False


def test_routes_are_versioned() -> None:
    paths = {route.path for route in create_app().routes}
    assert f"{API_PREFIX}/verify/{{credential_id}}" in paths
    assert f"{API_PREFIX}/search/credentials" in paths
    assert "/health" in paths
    assert "/metrics" in paths
