"""Tests for chain_reader.py: the single-shot eth_call constant reader."""
from __future__ import annotations

import json

import httpx
import pytest

from dao_planner.abi import QUORUM_DENOMINATOR, function_selector
from dao_planner.chain_reader import RPCConstantReader
from dao_planner.exceptions import ExternalReadFailure

from conftest import address

RPC_URL = "http://rpc.test"
TEMPLATE = address(0x7E3)


def uint_result(value: int) -> str:
    return "0x" + value.to_bytes(32, "big").hex()


def make_reader(handler) -> tuple:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RPCConstantReader(RPC_URL, http_client=client), client


class TestRPCConstantReader:
    @pytest.mark.asyncio
    async def test_reads_uint256(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            requests.append(body)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": uint_result(1_000_000)})

        reader, client = make_reader(handler)
        value = await reader.read_constant(TEMPLATE.lower(), QUORUM_DENOMINATOR)

        assert value == 1_000_000
        assert len(requests) == 1
        assert requests[0]["method"] == "eth_call"
        call, block = requests[0]["params"]
        assert call == {"to": TEMPLATE, "data": "0x" + function_selector(QUORUM_DENOMINATOR).hex()}
        assert block == "latest"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_rpc_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "execution reverted"}},
            )

        reader, client = make_reader(handler)
        with pytest.raises(ExternalReadFailure) as exc_info:
            await reader.read_constant(TEMPLATE, QUORUM_DENOMINATOR)
        assert "execution reverted" in exc_info.value.message
        assert exc_info.value.details["code"] == -32000
        await client.aclose()

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        reader, client = make_reader(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(ExternalReadFailure) as exc_info:
            await reader.read_constant(TEMPLATE, QUORUM_DENOMINATOR)
        assert exc_info.value.details["function"] == QUORUM_DENOMINATOR
        await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        reader, client = make_reader(handler)
        with pytest.raises(ExternalReadFailure):
            await reader.read_constant(TEMPLATE, QUORUM_DENOMINATOR)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_no_retry(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        reader, client = make_reader(handler)
        with pytest.raises(ExternalReadFailure):
            await reader.read_constant(TEMPLATE, QUORUM_DENOMINATOR)
        assert len(calls) == 1
        await client.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("result", ["0x", None, "0x1234"])
    async def test_empty_or_undecodable_result(self, result):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})

        reader, client = make_reader(handler)
        with pytest.raises(ExternalReadFailure):
            await reader.read_constant(TEMPLATE, QUORUM_DENOMINATOR)
        await client.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"error": "rate limited"}, ["x"], "ok"])
    async def test_malformed_response_body(self, body):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        reader, client = make_reader(handler)
        with pytest.raises(ExternalReadFailure):
            await reader.read_constant(TEMPLATE, QUORUM_DENOMINATOR)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_string_error_message_kept(self):
        reader, client = make_reader(lambda request: httpx.Response(200, json={"error": "rate limited"}))
        with pytest.raises(ExternalReadFailure) as exc_info:
            await reader.read_constant(TEMPLATE, QUORUM_DENOMINATOR)
        assert "rate limited" in exc_info.value.message
        assert exc_info.value.details["code"] is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_invalid_address(self):
        reader, client = make_reader(lambda request: httpx.Response(200))
        with pytest.raises(ValueError):
            await reader.read_constant("0xnope", QUORUM_DENOMINATOR)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_keeps_injected_client(self):
        reader, client = make_reader(lambda request: httpx.Response(200))
        await reader.close()
        assert not client.is_closed
        await client.aclose()

    def test_requires_url(self):
        with pytest.raises(ValueError):
            RPCConstantReader("")
