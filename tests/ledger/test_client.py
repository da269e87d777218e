"""StacksLedgerClient against a mocked Stacks node (httpx.MockTransport)."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from trustcred.core.errors import LedgerUnavailable
from trustcred.ledger import clarity
from trustcred.ledger.client import InMemoryLedgerClient, StacksLedgerClient

CONTRACT = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"


def _client(handler) -> StacksLedgerClient:
    http = httpx.AsyncClient(
        base_url="https://node.example", transport=httpx.MockTransport(handler)
    )
    return StacksLedgerClient(
        api_url="https://node.example",
        contract_address=CONTRACT,
        contract_name="digital-credentials",
        network="testnet",
        http_client=http,
    )


def test_call_read_only_posts_hex_arguments() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"okay": True, "result": "0x03"})

    client = _client(handler)
    arg = clarity.buffer_cv(b"\xab" * 32)
    result = asyncio.run(client.call_read_only("get-credential", [arg]))

    assert result is True
    assert seen["path"] == (
        f"/v2/contracts/call-read/{CONTRACT}/digital-credentials/get-credential"
    )
    assert seen["body"] == {"sender": CONTRACT, "arguments": ["0x" + arg.hex()]}


def test_call_read_only_rejected_call_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"okay": False, "cause": "NoSuchContract"})

    with pytest.raises(LedgerUnavailable, match="NoSuchContract"):
        asyncio.run(_client(handler).call_read_only("get-credential", []))


def test_call_read_only_http_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(LedgerUnavailable, match="failed"):
        asyncio.run(_client(handler).call_read_only("get-credential", []))


def test_call_read_only_transport_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LedgerUnavailable):
        asyncio.run(_client(handler).call_read_only("get-contract-info", []))


@pytest.mark.parametrize(
    "result",
    ["0x42", "0x05" + "20" + "00" * 20],
    ids=["unknown-type", "principal-version-32"],
)
def test_call_read_only_undecodable_result_raises(result: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"okay": True, "result": result})

    with pytest.raises(LedgerUnavailable, match="undecodable"):
        asyncio.run(_client(handler).call_read_only("get-credential", []))


def test_in_memory_client_looks_up_by_buffer_argument() -> None:
    ledger = InMemoryLedgerClient()
    ledger.put("AB" * 32, {"issuer": "ST1"})
    arg = clarity.buffer_cv(bytes.fromhex("ab" * 32))

    assert asyncio.run(ledger.call_read_only("get-credential", [arg])) == {
        "issuer": "ST1"
    }
    assert ledger.calls == ["get-credential"]


def test_in_memory_client_offline_raises() -> None:
    ledger = InMemoryLedgerClient()
    ledger.available = False
    with pytest.raises(LedgerUnavailable):
        asyncio.run(ledger.call_read_only("get-contract-info", []))
