"""ABI encoding helpers and the function signatures the planner calls.

This is a thin layer over eth_abi: a function call is its 4-byte selector
followed by the ABI-encoded arguments. Selectors are derived from the
canonical signature strings below, so the tables double as documentation of
every contract entrypoint a plan can touch.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Sequence

from eth_abi import encode
from web3 import Web3


# ============ Safe ============

SAFE_SETUP = "setup(address[],uint256,address,bytes,address,address,uint256,address)"
SAFE_ENABLE_MODULE = "enableModule(address)"
SAFE_SET_GUARD = "setGuard(address)"
SAFE_ADD_OWNER_WITH_THRESHOLD = "addOwnerWithThreshold(address,uint256)"
SAFE_REMOVE_OWNER = "removeOwner(address,address,uint256)"
SAFE_EXEC_TRANSACTION = (
    "execTransaction(address,uint256,bytes,uint8,uint256,uint256,uint256,address,address,bytes)"
)
SAFE_PROXY_FACTORY_CREATE_PROXY = "createProxyWithNonce(address,bytes,uint256)"

# ============ Module proxy factory / MultiSend ============

DEPLOY_MODULE = "deployModule(address,bytes,uint256)"
MULTI_SEND = "multiSend(bytes)"

# ============ Zodiac modules ============

# setUp(bytes) is shared by every Zodiac-style module and the legacy token/claim contracts
SET_UP = "setUp(bytes)"
OWNER = "owner()"
SET_AZORIUS = "setAzorius(address)"
QUORUM_DENOMINATOR = "QUORUM_DENOMINATOR()"

# ============ Tokens ============

ERC20_APPROVE = "approve(address,uint256)"
# initialize((string name,string symbol) metadata_,(address to,uint256 amount)[] allocations_,
#            address owner_,bool locked_,uint256 maxTotalSupply_)
LOCKABLE_TOKEN_INITIALIZE = "initialize((string,string),(address,uint256)[],address,bool,uint256)"

# ============ Key-value registry ============

UPDATE_VALUES = "updateValues(string[],string[])"


# ============ setUp() parameter layouts ============

LINEAR_ERC20_VOTING_SETUP_PARAMS = [
    "address",  # owner
    "address",  # governance token
    "address",  # azorius module
    "uint32",  # voting period
    "uint256",  # required proposer weight
    "uint256",  # quorum numerator
    "uint256",  # basis numerator
]

LINEAR_ERC721_VOTING_SETUP_PARAMS = [
    "address",  # owner
    "address[]",  # governance tokens
    "uint256[]",  # governance token weights
    "address",  # azorius module
    "uint32",  # voting period
    "uint256",  # quorum threshold
    "uint256",  # proposer threshold
    "uint256",  # basis numerator
]

AZORIUS_SETUP_PARAMS = ["address", "address", "address", "address[]", "uint32", "uint32"]
VOTES_ERC20_SETUP_PARAMS = ["string", "string", "address[]", "uint256[]"]
ERC20_CLAIM_SETUP_PARAMS = ["uint32", "address", "address", "address", "uint256"]
FRACTAL_MODULE_SETUP_PARAMS = ["address", "address", "address", "address[]"]
FREEZE_VOTING_SETUP_PARAMS = ["address", "uint256", "uint32", "uint32", "address"]
AZORIUS_FREEZE_GUARD_SETUP_PARAMS = ["address", "address"]
MULTISIG_FREEZE_GUARD_SETUP_PARAMS = ["uint32", "uint32", "address", "address", "address"]


@lru_cache(maxsize=None)
def function_selector(signature: str) -> bytes:
    """Return the 4-byte selector for a canonical function signature."""
    return Web3.keccak(text=signature)[:4]


def _argument_types(signature: str) -> list[str]:
    """Split the argument list of a canonical signature into ABI type strings."""
    inner = signature[signature.index("(") + 1 : signature.rindex(")")]
    types: list[str] = []
    depth = 0
    current = ""
    for char in inner:
        if char == "," and depth == 0:
            types.append(current)
            current = ""
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        current += char
    if current:
        types.append(current)
    return types


def encode_params(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """ABI-encode a parameter tuple (no selector)."""
    return encode(list(types), list(values))


def encode_call(signature: str, args: Sequence[Any] = ()) -> bytes:
    """Encode calldata for ``signature`` with ``args``."""
    types = _argument_types(signature)
    if len(types) != len(args):
        raise ValueError(
            f"{signature} takes {len(types)} arguments, got {len(args)}"
        )
    if not types:
        return function_selector(signature)
    return function_selector(signature) + encode(types, list(args))


def encode_setup(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """Encode the common ``setUp(bytes)`` initializer wrapping an encoded parameter tuple."""
    return encode_call(SET_UP, [encode_params(types, values)])
