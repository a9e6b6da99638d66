"""
Pytest configuration for dao-planner tests.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from eth_abi import decode
from web3 import Web3

# Add package source to path
package_src = Path(__file__).parent.parent / "src"
if str(package_src) not in sys.path:
    sys.path.insert(0, str(package_src))

os.environ.setdefault("DAO_PLANNER_RPC_URL", "http://localhost:8545")

from dao_planner.config import ContractAddresses  # noqa: E402
from dao_planner.entropy import SeededEntropy  # noqa: E402
from dao_planner.prediction import AddressPredictor  # noqa: E402

QUORUM_DENOMINATOR_VALUE = 1_000_000

# Any bytes work for prediction; the real value comes from SafeProxyFactory.proxyCreationCode()
PROXY_CREATION_CODE = bytes.fromhex("608060405234801561001057600080fd5b50")


def address(n: int) -> str:
    """Distinct, checksummed test address."""
    return Web3.to_checksum_address(f"0x{n:040x}")


def decode_setup(initializer: bytes, types) -> tuple:
    """Unwrap setUp(bytes) calldata and decode the inner parameter tuple."""
    (inner,) = decode(["bytes"], initializer[4:])
    return decode(list(types), inner)


@pytest.fixture
def contracts() -> ContractAddresses:
    """Every deployment constant configured with a distinct address."""
    names = list(ContractAddresses.model_fields)
    return ContractAddresses(**{name: address(0x1000 + i) for i, name in enumerate(names)})


@pytest.fixture
def relay(contracts) -> str:
    return contracts.multisend_call_only


@pytest.fixture
def predictor(contracts) -> AddressPredictor:
    return AddressPredictor(contracts.zodiac_module_proxy_factory)


@pytest.fixture
def safe_address() -> str:
    return address(0x5AFE)


@pytest.fixture
def entropy() -> SeededEntropy:
    return SeededEntropy(seed=42)


@pytest.fixture
def reader():
    """Constant reader returning a fixed quorum denominator."""
    mock = AsyncMock()
    mock.read_constant = AsyncMock(return_value=QUORUM_DENOMINATOR_VALUE)
    return mock
