"""Owner cleanup for multisig-only organizations."""
from __future__ import annotations

from web3 import Web3

from ..exceptions import ConfigurationError
from ..models import AtomicCall, MultisigDAO
from .safe_calls import remove_owner_call


class MultisigOwnerBuilder:
    """
    Removes the relay from a freshly created multisig Safe.

    The Safe is created with owners [...trusted, relay], so the relay follows
    the last trusted signer in the owner list. Removing it also sets the final
    signature threshold.
    """

    def __init__(self, dao: MultisigDAO, safe_address: str, relay_address: str):
        if not dao.trusted_addresses:
            raise ConfigurationError("Multisig needs at least one signer", field="trusted_addresses")
        if not 1 <= dao.signature_threshold <= len(dao.trusted_addresses):
            raise ConfigurationError(
                f"Signature threshold {dao.signature_threshold} is out of range for "
                f"{len(dao.trusted_addresses)} signers",
                field="signature_threshold",
            )
        self._dao = dao
        self._safe_address = Web3.to_checksum_address(safe_address)
        self._relay_address = Web3.to_checksum_address(relay_address)

    def remove_relay_owner_call(self) -> AtomicCall:
        return remove_owner_call(
            self._safe_address,
            self._dao.trusted_addresses[-1],
            self._relay_address,
            self._dao.signature_threshold,
        )


__all__ = ["MultisigOwnerBuilder"]
