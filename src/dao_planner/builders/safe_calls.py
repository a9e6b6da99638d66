"""Calls the Safe makes on itself (owners, modules, guards)."""
from __future__ import annotations

from web3 import Web3

from ..abi import (
    SAFE_ADD_OWNER_WITH_THRESHOLD,
    SAFE_ENABLE_MODULE,
    SAFE_REMOVE_OWNER,
    SAFE_SET_GUARD,
    encode_call,
)
from ..models import AtomicCall


def enable_module_call(safe: str, module: str) -> AtomicCall:
    return AtomicCall(
        to=Web3.to_checksum_address(safe),
        data=encode_call(SAFE_ENABLE_MODULE, [Web3.to_checksum_address(module)]),
    )


def add_owner_call(safe: str, owner: str, threshold: int) -> AtomicCall:
    return AtomicCall(
        to=Web3.to_checksum_address(safe),
        data=encode_call(
            SAFE_ADD_OWNER_WITH_THRESHOLD, [Web3.to_checksum_address(owner), threshold]
        ),
    )


def remove_owner_call(safe: str, prev_owner: str, owner: str, threshold: int) -> AtomicCall:
    """Safe owners form a linked list; ``prev_owner`` must point at ``owner``."""
    return AtomicCall(
        to=Web3.to_checksum_address(safe),
        data=encode_call(
            SAFE_REMOVE_OWNER,
            [Web3.to_checksum_address(prev_owner), Web3.to_checksum_address(owner), threshold],
        ),
    )


def set_guard_call(target: str, guard: str) -> AtomicCall:
    """setGuard(guard) on a Safe or a guardable module (same selector on both)."""
    return AtomicCall(
        to=Web3.to_checksum_address(target),
        data=encode_call(SAFE_SET_GUARD, [Web3.to_checksum_address(guard)]),
    )


__all__ = ["add_owner_call", "enable_module_call", "remove_owner_call", "set_guard_call"]
