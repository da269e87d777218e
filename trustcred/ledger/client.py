"""Read-only access to the digital-credentials smart contract.

Same Protocol-with-two-implementations shape as the cache and rate
limiter: a Stacks node client for deployments and an in-memory contract
for local runs and tests.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol, runtime_checkable

import httpx

from trustcred.core.errors import LedgerUnavailable
from trustcred.core.metrics import LEDGER_CALL_DURATION
from trustcred.ledger import clarity

logger = logging.getLogger(__name__)


@runtime_checkable
class LedgerClient(Protocol):
    network: str

    async def call_read_only(self, function_name: str, args: list[bytes]) -> Any:
        """Call a read-only contract function and return the decoded Clarity value.

        Raises LedgerUnavailable when the call cannot be completed.
        """
        ...

    async def aclose(self) -> None: ...


class StacksLedgerClient:
    """Calls the contract through a Stacks node's `/v2/contracts/call-read` API."""

    def __init__(
        self,
        *,
        api_url: str,
        contract_address: str,
        contract_name: str,
        network: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.network = network
        self.contract_address = contract_address
        self.contract_name = contract_name
        self._http = http_client or httpx.AsyncClient(base_url=api_url, timeout=timeout)

    async def call_read_only(self, function_name: str, args: list[bytes]) -> Any:
        path = (
            f"/v2/contracts/call-read/{self.contract_address}"
            f"/{self.contract_name}/{function_name}"
        )
        body = {
            "sender": self.contract_address,
            "arguments": [clarity.to_hex(a) for a in args],
        }

        start = time.monotonic()
        try:
            resp = await self._http.post(path, json=body)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as exc:
            raise LedgerUnavailable(
                f"read-only call {function_name} failed: {exc}"
            ) from exc
        except ValueError as exc:
            raise LedgerUnavailable(
                f"read-only call {function_name} returned invalid JSON"
            ) from exc
        finally:
            LEDGER_CALL_DURATION.labels(function=function_name).observe(
                time.monotonic() - start
            )

        if not payload.get("okay"):
            raise LedgerUnavailable(
                f"read-only call {function_name} rejected: "
                f"{payload.get('cause', 'unknown cause')}"
            )

        try:
            return clarity.decode(payload["result"])
        except (KeyError, clarity.ClarityDecodeError) as exc:
            raise LedgerUnavailable(
                f"read-only call {function_name} returned an undecodable result"
            ) from exc

    async def aclose(self) -> None:
        await self._http.aclose()


class InMemoryLedgerClient:
    """A stand-in contract holding credential tuples in a dict.

    Records are stored the way the contract returns them (kebab-case
    tuple keys, principals as addresses, buffers as 0x-hex).  Set
    `available = False` to simulate an unreachable node; `calls` counts
    every read so tests can assert on cache behaviour.
    """

    def __init__(self, network: str = "testnet") -> None:
        self.network = network
        self.available = True
        self.calls: list[str] = []
        self._records: dict[str, dict[str, Any]] = {}

    def put(self, credential_id: str, record: dict[str, Any]) -> None:
        self._records[credential_id.lower()] = record

    def revoke(self, credential_id: str, revoked_at: int) -> None:
        record = self._records[credential_id.lower()]
        record["revoked"] = True
        record["revoked-at"] = revoked_at

    def clear(self) -> None:
        self._records.clear()
        self.calls.clear()
        self.available = True

    async def call_read_only(self, function_name: str, args: list[bytes]) -> Any:
        self.calls.append(function_name)
        if not self.available:
            raise LedgerUnavailable(f"read-only call {function_name} failed: offline")

        if function_name == "get-credential":
            buffer_hex = clarity.decode(args[0])
            return self._records.get(buffer_hex[2:])
        if function_name == "get-contract-info":
            return clarity.ResponseOk(
                {"name": "digital-credentials", "total-credentials": len(self._records)}
            )
        raise LedgerUnavailable(f"unknown read-only function {function_name}")

    async def aclose(self) -> None:
        return None
