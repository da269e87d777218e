from __future__ import annotations

import pytest

from trustcred.core.config import DEFAULT_CONTRACT, AppEnv, Settings, load_settings

_VARS = (
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_JSON",
    "PORT",
    "STACKS_NETWORK",
    "STACKS_API_URL",
    "STACKS_CONTRACT",
    "LEDGER_FALLBACK",
    "LEDGER_TIMEOUT",
    "BASE_URL",
    "RATE_LIMIT_ENABLED",
    "CORS_ORIGINS",
    "DATABASE_URL",
    "REDIS_URL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


# ---- valid values ----


def test_load_settings_defaults() -> None:
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.port == 3001
    assert settings.stacks_network == "testnet"
    assert settings.stacks_api_url == "https://api.testnet.hiro.so"
    assert f"{settings.contract_address}.{settings.contract_name}" == DEFAULT_CONTRACT
    assert settings.ledger_fallback == "mock"
    assert settings.ledger_timeout == 10.0
    assert settings.rate_limit_enabled is True
    assert settings.database_url is None
    assert settings.redis_url is None


def test_load_settings_normalizes_case_and_whitespace(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "  TEST ")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("STACKS_NETWORK", "MAINNET")
    settings = load_settings()
    assert settings.app_env == "test"
    assert settings.log_level == "debug"
    assert settings.stacks_network == "mainnet"
    assert settings.stacks_api_url == "https://api.mainnet.hiro.so"


def test_fallback_defaults_to_fail_outside_dev(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    assert load_settings().ledger_fallback == "fail"


def test_explicit_ledger_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STACKS_API_URL", "http://localhost:3999/")
    monkeypatch.setenv("STACKS_CONTRACT", "ST3ABC.credentials-v2")
    monkeypatch.setenv("LEDGER_TIMEOUT", "2.5")
    monkeypatch.setenv("BASE_URL", "https://verify.example.org/")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")

    settings = load_settings()

    assert settings.stacks_api_url == "http://localhost:3999"
    assert settings.contract_address == "ST3ABC"
    assert settings.contract_name == "credentials-v2"
    assert settings.ledger_timeout == 2.5
    assert settings.base_url == "https://verify.example.org"
    assert settings.cors_origins == ("https://a.example", "https://b.example")
    assert settings.rate_limit_enabled is False


# ---- invalid values ----


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("APP_ENV", "staging", "APP_ENV must be dev|test|prod"),
        ("LOG_LEVEL", "verbose", "LOG_LEVEL must be debug|info|warning|error"),
        ("PORT", "eighty", "PORT must be an integer"),
        ("STACKS_NETWORK", "devnet", "STACKS_NETWORK must be mainnet|testnet"),
        ("LEDGER_FALLBACK", "retry", "LEDGER_FALLBACK must be fail|mock"),
        ("LEDGER_TIMEOUT", "soon", "LEDGER_TIMEOUT must be a number"),
        ("STACKS_CONTRACT", ".name-only", "STACKS_CONTRACT must be"),
    ],
)
def test_load_settings_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str, message: str
) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=message):
        load_settings()


def test_mock_fallback_is_refused_in_prod(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("LEDGER_FALLBACK", "mock")
    with pytest.raises(ValueError, match="not allowed when APP_ENV=prod"):
        load_settings()


# ---- Settings properties ----


def _make_settings(app_env: AppEnv = "dev") -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=app_env,
        log_level="info",
        log_json=False,
        port=3001,
        database_url=None,
        redis_url=None,
    )


@pytest.mark.parametrize("env", ["dev", "test", "prod"])
def test_settings_env_flags(env: AppEnv) -> None:
    s = _make_settings(env)
    assert (s.is_dev, s.is_test, s.is_prod) == (env == "dev", env == "test", env == "prod")


def test_settings_is_frozen() -> None:
    s = _make_settings()
    with pytest.raises(AttributeError):
        s.app_env = "prod"  # type: ignore[misc]
