"""Module builders: one per deployable clone or per group of Safe calls."""

from .ancillary import AncillaryModuleBuilder
from .base import ModuleBuilder, ModuleSlot, SlotState
from .freeze import FreezeGuardBuilder, FreezeVotingBuilder, select_freeze_voting_type
from .governance import GovernanceModuleBuilder
from .metadata import MetadataBuilder
from .multisig import MultisigOwnerBuilder
from .strategy import VotingStrategyBuilder, quorum_numerator
from .token import TokenBuilder, TokenClaimBuilder, calculate_token_allocations

__all__ = [
    "AncillaryModuleBuilder",
    "ModuleBuilder",
    "ModuleSlot",
    "SlotState",
    "FreezeGuardBuilder",
    "FreezeVotingBuilder",
    "select_freeze_voting_type",
    "GovernanceModuleBuilder",
    "MetadataBuilder",
    "MultisigOwnerBuilder",
    "VotingStrategyBuilder",
    "quorum_numerator",
    "TokenBuilder",
    "TokenClaimBuilder",
    "calculate_token_allocations",
]
