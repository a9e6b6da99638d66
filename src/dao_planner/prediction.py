"""Deterministic address prediction for module proxy clones.

The module proxy factory deploys every module as an EIP-1167 minimal proxy
of a template contract through CREATE2:

- bytecode = clone stub parameterized by the template address
- salt     = keccak256(keccak256(initializer) ++ uint256(nonce))
- address  = keccak256(0xff ++ factory ++ salt ++ keccak256(bytecode))[12:]

Everything here is a pure function of its inputs; no RPC access.

References:
- https://eips.ethereum.org/EIPS/eip-1167
- https://eips.ethereum.org/EIPS/eip-1014
"""

from __future__ import annotations

from eth_abi import encode
from eth_utils import is_address
from web3 import Web3


# EIP-1167 creation code as emitted by the module proxy factory, split around the template
_CLONE_PREFIX = bytes.fromhex("602d8060093d393df3363d3d373d3d3d363d73")
_CLONE_SUFFIX = bytes.fromhex("5af43d82803e903d91602b57fd5bf3")

_MAX_UINT256 = 2**256 - 1


def _address_bytes(addr: str, name: str) -> bytes:
    """Decode a hex address to its 20 raw bytes, failing fast on malformed input."""
    if not isinstance(addr, str) or not is_address(addr):
        raise ValueError(f"{name} is not a valid address: {addr!r}")
    return bytes.fromhex(addr[2:])


def generate_clone_bytecode(template: str) -> bytes:
    """Return the minimal proxy creation code delegating to ``template``."""
    return _CLONE_PREFIX + _address_bytes(template, "template") + _CLONE_SUFFIX


def generate_salt(initializer: bytes, nonce: int) -> bytes:
    """Salt = keccak256(keccak256(initializer) ++ uint256(nonce))."""
    if not isinstance(initializer, (bytes, bytearray)):
        raise ValueError("initializer must be bytes")
    if not 0 <= nonce <= _MAX_UINT256:
        raise ValueError(f"nonce out of uint256 range: {nonce}")
    return Web3.keccak(Web3.keccak(bytes(initializer)) + encode(["uint256"], [nonce]))


def create2_address(factory: str, salt: bytes, bytecode_hash: bytes) -> str:
    """CREATE2: keccak256(0xff ++ factory ++ salt ++ bytecode_hash)[12:]."""
    if len(salt) != 32 or len(bytecode_hash) != 32:
        raise ValueError("salt and bytecode hash must be 32 bytes")
    digest = Web3.keccak(b"\xff" + _address_bytes(factory, "factory") + salt + bytecode_hash)
    return Web3.to_checksum_address("0x" + digest[-20:].hex())


def predict_address(factory: str, template: str, initializer: bytes, nonce: int) -> str:
    """Predict the address the factory will deploy a clone of ``template`` to.

    Args:
        factory: Module proxy factory address
        template: Template (master copy) contract address
        initializer: Calldata the factory calls on the fresh clone
        nonce: 256-bit salt nonce passed to deployModule

    Returns:
        Checksummed proxy address
    """
    bytecode_hash = Web3.keccak(generate_clone_bytecode(template))
    return create2_address(factory, generate_salt(initializer, nonce), bytecode_hash)


class AddressPredictor:
    """Address predictor bound to one module proxy factory."""

    def __init__(self, factory: str):
        _address_bytes(factory, "factory")
        self.factory = Web3.to_checksum_address(factory)

    def predict(self, template: str, initializer: bytes, nonce: int) -> str:
        return predict_address(self.factory, template, initializer, nonce)


__all__ = [
    "AddressPredictor",
    "create2_address",
    "generate_clone_bytecode",
    "generate_salt",
    "predict_address",
]
