"""Freeze voting and freeze guard builders for sub-organizations.

A sub-organization is frozen according to its parent's voting rules, so the
freeze voting flavor follows the parent's strategy type, not the child's.
The guard flavor follows the child: Azorius children get the guard on their
governance module, multisig children on the Safe itself.
"""
from __future__ import annotations

import logging
from typing import Optional

from web3 import Web3

from ..abi import (
    AZORIUS_FREEZE_GUARD_SETUP_PARAMS,
    FREEZE_VOTING_SETUP_PARAMS,
    MULTISIG_FREEZE_GUARD_SETUP_PARAMS,
    OWNER,
    encode_call,
    encode_setup,
)
from ..config import ContractAddresses
from ..exceptions import ConfigurationError, UnsupportedVariantError
from ..models import (
    AtomicCall,
    FreezeParameters,
    FreezeVotingType,
    GovernanceKind,
    ParentLink,
    VotingStrategyType,
)
from ..prediction import AddressPredictor
from .base import ModuleBuilder
from .safe_calls import set_guard_call

logger = logging.getLogger(__name__)

_FREEZE_VOTING_TEMPLATES = {
    FreezeVotingType.ERC20: "freeze_voting_erc20_master_copy",
    FreezeVotingType.ERC721: "freeze_voting_erc721_master_copy",
    FreezeVotingType.MULTISIG: "freeze_voting_multisig_master_copy",
}

_FREEZE_GUARD_TEMPLATES = {
    GovernanceKind.AZORIUS: "freeze_guard_azorius_master_copy",
    GovernanceKind.MULTISIG: "freeze_guard_multisig_master_copy",
}


def select_freeze_voting_type(
    parent_strategy_type: Optional[VotingStrategyType],
) -> FreezeVotingType:
    """Pick the freeze voting flavor from the parent's strategy (None = multisig parent)."""
    if parent_strategy_type is None:
        return FreezeVotingType.MULTISIG
    if parent_strategy_type in (
        VotingStrategyType.LINEAR_ERC20,
        VotingStrategyType.LINEAR_ERC20_HATS_WHITELISTING,
    ):
        return FreezeVotingType.ERC20
    if parent_strategy_type in (
        VotingStrategyType.LINEAR_ERC721,
        VotingStrategyType.LINEAR_ERC721_HATS_WHITELISTING,
    ):
        return FreezeVotingType.ERC721
    raise UnsupportedVariantError("parent voting strategy type", parent_strategy_type)


class FreezeVotingBuilder(ModuleBuilder):
    """
    Freeze voting clone.

    Deployed with a harmless owner() probe as initializer and configured with
    setUp() in a separate call from the Safe.
    """

    slot_name = "freeze_voting"

    def __init__(
        self,
        predictor: AddressPredictor,
        contracts: ContractAddresses,
        parent: ParentLink,
        freeze: FreezeParameters,
        nonce: int,
    ):
        if not parent.address:
            raise ConfigurationError("Parent address is required for freeze voting", field="parent")

        self.voting_type = select_freeze_voting_type(parent.strategy_type)
        super().__init__(
            predictor,
            contracts.require(_FREEZE_VOTING_TEMPLATES[self.voting_type]),
            nonce,
        )
        self._parent = parent
        self._freeze = freeze
        self._slot.prepare(encode_call(OWNER))

    def _votes_source(self) -> str:
        """Where the freeze voting contract counts parent votes."""
        parent = self._parent
        # Only plain ERC721 parents count votes through their strategy
        if parent.strategy_type == VotingStrategyType.LINEAR_ERC721:
            if not parent.strategy_address:
                raise ConfigurationError(
                    "Parent strategy address is required for ERC721 freeze voting",
                    field="parent.strategy_address",
                )
            return parent.strategy_address
        return parent.token_address or parent.address

    def setup_call(self) -> AtomicCall:
        """freezeVoting.setUp(parent, threshold, proposalPeriod, freezePeriod, votesSource)."""
        freeze = self._freeze
        call = AtomicCall(
            to=self.address,
            data=encode_setup(
                FREEZE_VOTING_SETUP_PARAMS,
                [
                    Web3.to_checksum_address(self._parent.address),  # owner, parent organization
                    freeze.freeze_votes_threshold,
                    freeze.freeze_proposal_period,
                    freeze.freeze_period,
                    Web3.to_checksum_address(self._votes_source()),
                ],
            ),
        )
        self._slot.mark_configured()
        return call


class FreezeGuardBuilder(ModuleBuilder):
    """Freeze guard clone blocking execution while the sub-organization is frozen."""

    slot_name = "freeze_guard"

    def __init__(
        self,
        predictor: AddressPredictor,
        contracts: ContractAddresses,
        parent: ParentLink,
        freeze: FreezeParameters,
        freeze_voting_address: str,
        safe_address: str,
        governance_kind: GovernanceKind,
        nonce: int,
        governance_address: Optional[str] = None,
    ):
        if governance_kind == GovernanceKind.AZORIUS and not governance_address:
            raise ConfigurationError(
                "Error encoding freeze guard call data - governance module address not provided",
                field="governance_address",
            )

        super().__init__(
            predictor,
            contracts.require(_FREEZE_GUARD_TEMPLATES[governance_kind]),
            nonce,
        )
        self.governance_kind = governance_kind
        self._safe_address = Web3.to_checksum_address(safe_address)
        self._governance_address = governance_address

        parent_address = Web3.to_checksum_address(parent.address)
        freeze_voting = Web3.to_checksum_address(freeze_voting_address)
        if governance_kind == GovernanceKind.AZORIUS:
            initializer = encode_setup(
                AZORIUS_FREEZE_GUARD_SETUP_PARAMS,
                [parent_address, freeze_voting],
            )
        else:
            initializer = encode_setup(
                MULTISIG_FREEZE_GUARD_SETUP_PARAMS,
                [
                    freeze.timelock_period,
                    freeze.execution_period,
                    parent_address,
                    freeze_voting,
                    self._safe_address,
                ],
            )
        self._slot.prepare(initializer)

    @property
    def guard_target(self) -> str:
        """The contract the guard is attached to."""
        if self.governance_kind == GovernanceKind.AZORIUS:
            return Web3.to_checksum_address(self._governance_address)
        return self._safe_address

    def set_guard_call(self) -> AtomicCall:
        call = set_guard_call(self.guard_target, self.address)
        self._slot.mark_configured()
        return call


__all__ = ["FreezeGuardBuilder", "FreezeVotingBuilder", "select_freeze_voting_type"]
