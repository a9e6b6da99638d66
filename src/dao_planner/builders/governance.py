"""Azorius governance module builder."""
from __future__ import annotations

import logging
from typing import List, Sequence

from web3 import Web3

from ..abi import AZORIUS_SETUP_PARAMS, encode_setup
from ..config import ContractAddresses
from ..models import AtomicCall, AzoriusDAO
from ..prediction import AddressPredictor
from .base import ModuleBuilder
from .safe_calls import add_owner_call, enable_module_call, remove_owner_call

logger = logging.getLogger(__name__)


class GovernanceModuleBuilder(ModuleBuilder):
    """
    Azorius module owning the Safe once the plan executes.

    Owner hand-over, in order: the module is added as an owner with threshold 1,
    any previous owners are removed, and finally the relay removes itself. The
    module is inserted at the head of the owner list, so the relay is always
    the owner directly after it.
    """

    slot_name = "governance"

    def __init__(
        self,
        predictor: AddressPredictor,
        contracts: ContractAddresses,
        dao: AzoriusDAO,
        safe_address: str,
        relay_address: str,
        strategy_address: str,
        nonce: int,
    ):
        super().__init__(predictor, contracts.require("azorius_master_copy"), nonce)
        self._safe_address = Web3.to_checksum_address(safe_address)
        self._relay_address = Web3.to_checksum_address(relay_address)

        self._slot.prepare(
            encode_setup(
                AZORIUS_SETUP_PARAMS,
                [
                    self._safe_address,  # owner
                    self._safe_address,  # avatar
                    self._safe_address,  # target
                    [Web3.to_checksum_address(strategy_address)],
                    dao.timelock,  # timelock period in blocks
                    dao.execution_period,  # execution period in blocks
                ],
            )
        )

    def enable_module_call(self) -> AtomicCall:
        return enable_module_call(self._safe_address, self.address)

    def add_as_owner_call(self) -> AtomicCall:
        return add_owner_call(self._safe_address, self.address, 1)

    def remove_owner_calls(self, owners: Sequence[str]) -> List[AtomicCall]:
        """Remove pre-existing owners; each one sits right after the relay when removed."""
        return [
            remove_owner_call(self._safe_address, self._relay_address, owner, 1)
            for owner in owners
        ]

    def remove_relay_owner_call(self) -> AtomicCall:
        call = remove_owner_call(self._safe_address, self.address, self._relay_address, 1)
        self._slot.mark_configured()
        return call


__all__ = ["GovernanceModuleBuilder"]
