"""Key-value registry updates (organization name, snapshot space, token pointer)."""
from __future__ import annotations

from typing import Sequence

from web3 import Web3

from ..abi import UPDATE_VALUES, encode_call
from ..config import ContractAddresses
from ..models import AtomicCall, ProposalParameter, ProposalTransaction


class MetadataBuilder:
    """Builds updateValues() calls on the key-value registry. Sent by the Safe."""

    def __init__(self, contracts: ContractAddresses):
        self._registry = contracts.require("key_value_pairs")

    def update_values_call(self, keys: Sequence[str], values: Sequence[str]) -> AtomicCall:
        if len(keys) != len(values):
            raise ValueError("keys and values must have the same length")
        return AtomicCall(
            to=self._registry,
            data=encode_call(UPDATE_VALUES, [list(keys), list(values)]),
        )

    def update_name_call(self, dao_name: str) -> AtomicCall:
        return self.update_values_call(["daoName"], [dao_name])

    def update_snapshot_call(self, snapshot_ens: str) -> AtomicCall:
        return self.update_values_call(["snapshotENS"], [snapshot_ens])

    def update_erc20_address_proposal(self, token_address: str) -> ProposalTransaction:
        """Proposal form of pointing the registry's erc20Address key at ``token_address``."""
        return ProposalTransaction(
            target_address=self._registry,
            function_name=UPDATE_VALUES.split("(")[0],
            parameters=(
                ProposalParameter(signature="string[]", value_array=("erc20Address",)),
                ProposalParameter(
                    signature="string[]",
                    value_array=(Web3.to_checksum_address(token_address),),
                ),
            ),
        )


__all__ = ["MetadataBuilder"]
