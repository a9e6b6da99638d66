"""
On-chain constant reads.

The planner performs exactly one network read per plan: the voting strategy
template's QUORUM_DENOMINATOR(). Reads are single-shot; any failure surfaces
as ExternalReadFailure and the caller decides whether to rebuild the plan.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Optional, Protocol

import httpx
from eth_abi import decode
from eth_utils import is_address, to_checksum_address

from .abi import function_selector
from .exceptions import ExternalReadFailure

logger = logging.getLogger(__name__)


class ConstantReader(Protocol):
    """Reads a uint256 constant from an already-deployed contract."""

    async def read_constant(self, contract_address: str, function_signature: str) -> int:
        ...


class RPCConstantReader:
    """
    JSON-RPC eth_call reader.

    Usage:
        reader = RPCConstantReader("https://sepolia.base.org")
        denominator = await reader.read_constant(template, "QUORUM_DENOMINATOR()")
        await reader.close()
    """

    def __init__(
        self,
        rpc_url: str,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not rpc_url:
            raise ValueError("rpc_url is required")
        self._rpc_url = rpc_url
        self._timeout_seconds = timeout_seconds
        self._http_client = http_client
        self._owns_client = http_client is None
        self._request_id = 0

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout_seconds, connect=10.0),
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _eth_call(self, to: str, data: bytes) -> Any:
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": "eth_call",
            "params": [{"to": to, "data": "0x" + data.hex()}, "latest"],
        }

        client = await self._get_client()
        start_time = time.time()
        response = await client.post(
            self._rpc_url,
            json=payload,
            headers={"Content-Type": "application/json"},
        )
        latency_ms = (time.time() - start_time) * 1000
        response.raise_for_status()
        result = response.json()

        if not isinstance(result, dict):
            raise ExternalReadFailure(
                f"eth_call to {to} returned a malformed response: {result!r}",
                contract=to,
            )

        if "error" in result:
            error = result["error"]
            if isinstance(error, dict):
                message, code = error.get("message", error), error.get("code")
            else:
                message, code = str(error), None
            raise ExternalReadFailure(
                f"eth_call to {to} returned error: {message}",
                contract=to,
                details={"code": code},
            )

        logger.debug(f"eth_call to {to} succeeded in {latency_ms:.0f}ms")
        return result.get("result")

    async def read_constant(self, contract_address: str, function_signature: str) -> int:
        """
        Read a uint256 constant.

        Raises:
            ExternalReadFailure: On transport errors, RPC errors or an undecodable result
        """
        if not is_address(contract_address):
            raise ValueError(f"Invalid contract address: {contract_address}")
        to = to_checksum_address(contract_address)

        try:
            raw = await self._eth_call(to, function_selector(function_signature))
        except ExternalReadFailure:
            raise
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalReadFailure(
                f"Reading {function_signature} from {to} failed: {e}",
                contract=to,
                function=function_signature,
            ) from e

        if not raw or raw == "0x":
            raise ExternalReadFailure(
                f"{function_signature} on {to} returned no data",
                contract=to,
                function=function_signature,
            )

        try:
            (value,) = decode(["uint256"], bytes.fromhex(raw[2:] if raw.startswith("0x") else raw))
        except Exception as e:
            raise ExternalReadFailure(
                f"Could not decode {function_signature} result from {to}: {e}",
                contract=to,
                function=function_signature,
            ) from e

        logger.info(f"Read {function_signature} from {to}: {value}")
        return value


__all__ = ["ConstantReader", "RPCConstantReader"]
