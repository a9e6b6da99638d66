"""Linear voting strategy builder (ERC20 and ERC721 variants)."""
from __future__ import annotations

import logging
from typing import Optional

from web3 import Web3

from ..abi import (
    LINEAR_ERC20_VOTING_SETUP_PARAMS,
    LINEAR_ERC721_VOTING_SETUP_PARAMS,
    QUORUM_DENOMINATOR,
    SET_AZORIUS,
    encode_call,
    encode_setup,
)
from ..chain_reader import ConstantReader
from ..config import ContractAddresses
from ..exceptions import ConfigurationError, UnsupportedVariantError
from ..models import (
    SENTINEL_ADDRESS,
    AtomicCall,
    AzoriusDAO,
    AzoriusERC20DAO,
    AzoriusERC721DAO,
    VotingStrategyType,
)
from ..prediction import AddressPredictor
from .base import ModuleBuilder

logger = logging.getLogger(__name__)

# Basis numerator over a 1,000,000 denominator: 50% simple majority
BASIS_NUMERATOR = 500_000

# Weight needed to create a proposal
REQUIRED_PROPOSER_WEIGHT = 1


def quorum_numerator(quorum_percentage: int, quorum_denominator: int) -> int:
    """Quorum numerator for a percentage; integer division truncates."""
    return (quorum_percentage * quorum_denominator) // 100


class VotingStrategyBuilder(ModuleBuilder):
    """
    Voting strategy clone.

    The ERC20 variant needs the template's QUORUM_DENOMINATOR() before its
    initializer can be encoded, so preparation is async. The Azorius module
    address is unknown when the strategy is set up; the strategy starts with the
    sentinel and is wired later with setAzorius().
    """

    slot_name = "strategy"

    def __init__(
        self,
        predictor: AddressPredictor,
        contracts: ContractAddresses,
        dao: AzoriusDAO,
        safe_address: str,
        nonce: int,
        token_address: Optional[str] = None,
    ):
        self._dao = dao
        self._safe_address = Web3.to_checksum_address(safe_address)
        self._token_address = token_address
        self._quorum_numerator: Optional[int] = None

        strategy_type = dao.voting_strategy_type
        if strategy_type == VotingStrategyType.LINEAR_ERC20:
            template = contracts.require("linear_voting_erc20_master_copy")
        elif strategy_type == VotingStrategyType.LINEAR_ERC721:
            template = contracts.require("linear_voting_erc721_master_copy")
        else:
            raise UnsupportedVariantError("voting strategy type", strategy_type)

        super().__init__(predictor, template, nonce)

    @property
    def strategy_type(self) -> VotingStrategyType:
        return self._dao.voting_strategy_type

    @property
    def quorum_numerator(self) -> int:
        if self._quorum_numerator is None:
            raise ConfigurationError("Quorum numerator not computed yet", field="quorum_numerator")
        return self._quorum_numerator

    async def prepare(self, reader: ConstantReader) -> str:
        """Encode the initializer (reading the denominator if needed) and predict."""
        if self.strategy_type == VotingStrategyType.LINEAR_ERC20:
            initializer = await self._erc20_initializer(reader)
        else:
            initializer = self._erc721_initializer()
        return self._slot.prepare(initializer)

    async def _erc20_initializer(self, reader: ConstantReader) -> bytes:
        dao: AzoriusERC20DAO = self._dao
        if not self._token_address:
            raise ConfigurationError(
                "Error predicting strategy address - predicted token address was not provided",
                field="token_address",
            )

        denominator = await reader.read_constant(self._slot.template, QUORUM_DENOMINATOR)
        self._quorum_numerator = quorum_numerator(dao.quorum_percentage, denominator)
        logger.info(
            f"Quorum {dao.quorum_percentage}% -> numerator {self._quorum_numerator}/{denominator}"
        )

        return encode_setup(
            LINEAR_ERC20_VOTING_SETUP_PARAMS,
            [
                self._safe_address,  # owner
                Web3.to_checksum_address(self._token_address),  # governance token
                SENTINEL_ADDRESS,  # azorius module, wired by setAzorius
                dao.voting_period,
                REQUIRED_PROPOSER_WEIGHT,
                self._quorum_numerator,
                BASIS_NUMERATOR,
            ],
        )

    def _erc721_initializer(self) -> bytes:
        dao: AzoriusERC721DAO = self._dao
        if not dao.nfts:
            raise ConfigurationError("ERC721 voting needs at least one collection", field="nfts")

        # Total NFT supply is not readable on-chain, so quorum is an absolute threshold
        self._quorum_numerator = dao.quorum_threshold
        return encode_setup(
            LINEAR_ERC721_VOTING_SETUP_PARAMS,
            [
                self._safe_address,  # owner
                [Web3.to_checksum_address(nft.token_address) for nft in dao.nfts],
                [nft.token_weight for nft in dao.nfts],
                SENTINEL_ADDRESS,  # azorius module, wired by setAzorius
                dao.voting_period,
                dao.quorum_threshold,
                REQUIRED_PROPOSER_WEIGHT,
                BASIS_NUMERATOR,
            ],
        )

    def set_governance_call(self, governance_address: str) -> AtomicCall:
        """strategy.setAzorius(governance), sent by the Safe."""
        call = AtomicCall(
            to=self.address,
            data=encode_call(SET_AZORIUS, [Web3.to_checksum_address(governance_address)]),
        )
        self._slot.mark_configured()
        return call


__all__ = [
    "BASIS_NUMERATOR",
    "REQUIRED_PROPOSER_WEIGHT",
    "VotingStrategyBuilder",
    "quorum_numerator",
]
