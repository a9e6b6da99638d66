"""MultiSend batch encoding and the relay pre-approval step.

A batch is executed atomically by MultiSendCallOnly.multiSend(bytes), whose
argument is the tight concatenation, per call, of:

    uint8 operation ++ address to ++ uint256 value ++ uint256 len(data) ++ data

Calls the Safe must authorize itself (owner changes, guards, approvals) are
gathered into an inner batch and run through Safe.execTransaction as a single
DELEGATE_CALL to the relay. The relay is a Safe owner while the outer batch
runs, so it authorizes that execTransaction with a pre-approved signature
instead of an ECDSA one.

References:
- https://github.com/safe-global/safe-smart-account/blob/main/contracts/libraries/MultiSendCallOnly.sol
- https://docs.safe.global/advanced/smart-account-signatures
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Tuple

from eth_abi import encode
from eth_abi.packed import encode_packed
from web3 import Web3

from .abi import MULTI_SEND, SAFE_EXEC_TRANSACTION, encode_call
from .models import ZERO_ADDRESS, AtomicCall, Operation

logger = logging.getLogger(__name__)

# Signature type byte: "approved hash" where msg.sender is the owner
PRE_APPROVED_SIGNATURE_TYPE = 1


def encode_multisend(calls: Iterable[AtomicCall]) -> bytes:
    """Pack ``calls`` into a MultiSend payload, preserving order."""
    payload = b""
    for call in calls:
        payload += encode_packed(
            ["uint8", "address", "uint256", "uint256", "bytes"],
            [
                int(call.operation),
                Web3.to_checksum_address(call.to),
                call.value,
                len(call.data),
                call.data,
            ],
        )
    return payload


def build_relay_signature(relay: str) -> bytes:
    """Pre-approved signature for ``relay``: r = uint256(relay), s = 0, v = 1."""
    return encode(["address", "uint256"], [Web3.to_checksum_address(relay), 0]) + bytes(
        [PRE_APPROVED_SIGNATURE_TYPE]
    )


@dataclass(frozen=True)
class BatchEnvelope:
    """An ordered, immutable list of calls executed atomically through MultiSend."""
    calls: Tuple[AtomicCall, ...] = ()

    def __len__(self) -> int:
        return len(self.calls)

    def __iter__(self):
        return iter(self.calls)

    def index(self, call: AtomicCall) -> int:
        return self.calls.index(call)

    def encode(self) -> bytes:
        """MultiSend transaction payload."""
        return encode_multisend(self.calls)

    def multisend_calldata(self) -> bytes:
        """Calldata for ``multiSend(bytes)`` carrying this batch."""
        return encode_call(MULTI_SEND, [self.encode()])

    def as_delegate_call(self, relay: str) -> AtomicCall:
        """This batch as a DELEGATE_CALL into the relay."""
        return AtomicCall(
            to=Web3.to_checksum_address(relay),
            value=0,
            data=self.multisend_calldata(),
            operation=Operation.DELEGATE_CALL,
        )


def with_relay_approval(safe: str, relay: str, inner: BatchEnvelope) -> AtomicCall:
    """
    Wrap ``inner`` into the Safe's own execTransaction, authorized by the relay.

    The returned call is only valid while the relay is still a Safe owner, so
    the inner batch must remove the relay as its last owner change.
    """
    if not inner.calls:
        raise ValueError("inner batch is empty")

    delegate = inner.as_delegate_call(relay)
    data = encode_call(
        SAFE_EXEC_TRANSACTION,
        [
            delegate.to,
            0,  # value
            delegate.data,
            int(delegate.operation),
            0,  # safeTxGas
            0,  # baseGas
            0,  # gasPrice
            ZERO_ADDRESS,  # gasToken
            ZERO_ADDRESS,  # refundReceiver
            build_relay_signature(relay),
        ],
    )
    logger.debug(f"Wrapped {len(inner)} inner calls into execTransaction on {safe}")
    return AtomicCall(to=Web3.to_checksum_address(safe), value=0, data=data)


__all__ = [
    "BatchEnvelope",
    "PRE_APPROVED_SIGNATURE_TYPE",
    "build_relay_signature",
    "encode_multisend",
    "with_relay_approval",
]
