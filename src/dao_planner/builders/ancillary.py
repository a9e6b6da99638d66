"""Fractal module builder: lets a parent organization act through a sub-organization's Safe."""
from __future__ import annotations

import logging
from typing import Optional

from web3 import Web3

from ..abi import FRACTAL_MODULE_SETUP_PARAMS, encode_setup
from ..config import ContractAddresses
from ..models import AtomicCall
from ..prediction import AddressPredictor
from .base import ModuleBuilder
from .safe_calls import enable_module_call

logger = logging.getLogger(__name__)


class AncillaryModuleBuilder(ModuleBuilder):
    """Fractal module clone, owned by the parent (or the Safe itself without a parent)."""

    slot_name = "fractal_module"

    def __init__(
        self,
        predictor: AddressPredictor,
        contracts: ContractAddresses,
        safe_address: str,
        nonce: int,
        parent_address: Optional[str] = None,
    ):
        super().__init__(predictor, contracts.require("fractal_module_master_copy"), nonce)
        self._safe_address = Web3.to_checksum_address(safe_address)
        owner = Web3.to_checksum_address(parent_address) if parent_address else self._safe_address

        self._slot.prepare(
            encode_setup(
                FRACTAL_MODULE_SETUP_PARAMS,
                [
                    owner,
                    self._safe_address,  # avatar
                    self._safe_address,  # target
                    [],  # authorized controllers
                ],
            )
        )

    def enable_module_call(self) -> AtomicCall:
        call = enable_module_call(self._safe_address, self.address)
        self._slot.mark_configured()
        return call


__all__ = ["AncillaryModuleBuilder"]
