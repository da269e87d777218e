from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]
StacksNetwork = Literal["mainnet", "testnet"]
LedgerFallback = Literal["fail", "mock"]

DEFAULT_CONTRACT = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM.digital-credentials"

_DEFAULT_API_URLS: dict[str, str] = {
    "mainnet": "https://api.mainnet.hiro.so",
    "testnet": "https://api.testnet.hiro.so",
}

_TRUTHY = ("1", "true", "yes", "on")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    stacks_network: StacksNetwork = "testnet"
    stacks_api_url: str = _DEFAULT_API_URLS["testnet"]
    contract_address: str = DEFAULT_CONTRACT.split(".")[0]
    contract_name: str = "digital-credentials"
    base_url: str = "https://api.trustcred.com"
    ledger_fallback: LedgerFallback = "fail"
    ledger_timeout: float = 10.0
    rate_limit_enabled: bool = True
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def _parse_contract(raw: str) -> tuple[str, str]:
    address, _, name = raw.partition(".")
    if not address:
        raise ValueError(f"STACKS_CONTRACT must be <address>.<name> (got {raw!r})")
    return address, name or "digital-credentials"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "3001")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    network_raw = _getenv("STACKS_NETWORK", "testnet").lower()
    if network_raw not in ("mainnet", "testnet"):
        raise ValueError(
            f"STACKS_NETWORK must be mainnet|testnet (got {network_raw!r})"
        )

    # The synthetic-credential fallback is a dev convenience only.
    fallback_raw = _getenv(
        "LEDGER_FALLBACK", "mock" if app_env_raw == "dev" else "fail"
    ).lower()
    if fallback_raw not in ("fail", "mock"):
        raise ValueError(f"LEDGER_FALLBACK must be fail|mock (got {fallback_raw!r})")
    if fallback_raw == "mock" and app_env_raw == "prod":
        raise ValueError("LEDGER_FALLBACK=mock is not allowed when APP_ENV=prod")

    timeout_raw = _getenv("LEDGER_TIMEOUT", "10")
    try:
        ledger_timeout = float(timeout_raw)
    except ValueError:
        raise ValueError(
            f"LEDGER_TIMEOUT must be a number (got {timeout_raw!r})"
        ) from None

    contract_address, contract_name = _parse_contract(
        _getenv("STACKS_CONTRACT", DEFAULT_CONTRACT)
    )

    cors_origins = tuple(
        origin.strip()
        for origin in _getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv("LOG_JSON", "false").lower() in _TRUTHY,
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        stacks_network=network_raw,
        stacks_api_url=(
            _getenv("STACKS_API_URL", "") or _DEFAULT_API_URLS[network_raw]
        ).rstrip("/"),
        contract_address=contract_address,
        contract_name=contract_name,
        base_url=_getenv("BASE_URL", "https://api.trustcred.com").rstrip("/"),
        ledger_fallback=fallback_raw,
        ledger_timeout=ledger_timeout,
        rate_limit_enabled=_getenv("RATE_LIMIT_ENABLED", "true").lower() in _TRUTHY,
        cors_origins=cors_origins,
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
