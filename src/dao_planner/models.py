"""
Domain types for organization deployment planning.

Descriptors are read-only inputs supplied by the caller. AtomicCall is the
unit every builder emits; its position inside a batch is significant.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple, Union

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Linked-list head used by Safe and Zodiac modules
SENTINEL_ADDRESS = "0x0000000000000000000000000000000000000001"


class Operation(IntEnum):
    """Safe/MultiSend operation kind."""
    CALL = 0
    DELEGATE_CALL = 1


class GovernanceKind(str, Enum):
    """How the organization makes decisions."""
    MULTISIG = "multisig"
    AZORIUS = "azorius"


class VotingStrategyType(str, Enum):
    """Voting strategy variants."""
    LINEAR_ERC20 = "labelLinearERC20"
    LINEAR_ERC721 = "labelLinearERC721"
    LINEAR_ERC20_HATS_WHITELISTING = "labelLinearERC20WithWhitelisting"
    LINEAR_ERC721_HATS_WHITELISTING = "labelLinearERC721WithWhitelisting"


class TokenLockType(str, Enum):
    """Whether the governance token can be freely transferred."""
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class FreezeVotingType(str, Enum):
    """Freeze voting flavors, selected from the parent's voting rules."""
    ERC20 = "erc20"
    ERC721 = "erc721"
    MULTISIG = "multisig"


@dataclass(frozen=True)
class AtomicCall:
    """A single call inside a batch."""
    to: str
    value: int = 0
    data: bytes = b""
    operation: Operation = Operation.CALL

    @property
    def selector(self) -> bytes:
        return self.data[:4]

    def to_dict(self) -> dict:
        return {
            "to": self.to,
            "value": str(self.value),
            "data": "0x" + self.data.hex(),
            "operation": int(self.operation),
        }


@dataclass(frozen=True)
class ProposalParameter:
    """A typed parameter of a proposal transaction."""
    signature: str
    value: Optional[str] = None
    value_array: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class ProposalTransaction:
    """Human-readable form of a call, used when submitting it as a governance proposal."""
    target_address: str
    function_name: str
    parameters: Tuple[ProposalParameter, ...] = ()
    eth_value: int = 0

    def to_dict(self) -> dict:
        params = []
        for param in self.parameters:
            entry = {"signature": param.signature}
            if param.value_array is not None:
                entry["valueArray"] = list(param.value_array)
            else:
                entry["value"] = param.value
            params.append(entry)
        return {
            "targetAddress": self.target_address,
            "ethValue": {"bigintValue": str(self.eth_value), "value": str(self.eth_value)},
            "functionName": self.function_name,
            "parameters": params,
        }


@dataclass(frozen=True)
class TokenAllocation:
    """Initial token balance for an address."""
    address: str
    amount: int


@dataclass(frozen=True)
class NFTVotingWeight:
    """Voting weight of a single ERC721 collection."""
    token_address: str
    token_weight: int


@dataclass(frozen=True)
class FreezeParameters:
    """Freeze guard settings for a sub-organization."""
    freeze_votes_threshold: int
    freeze_proposal_period: int
    freeze_period: int
    timelock_period: int = 0
    execution_period: int = 0


@dataclass(frozen=True)
class ParentLink:
    """Weak reference to the parent organization of a sub-organization."""
    address: str
    token_address: Optional[str] = None
    strategy_type: Optional[VotingStrategyType] = None
    strategy_address: Optional[str] = None
    attach_fractal_module: bool = True


@dataclass(frozen=True)
class MultisigDAO:
    """Organization governed only by its Safe signers."""
    dao_name: str
    trusted_addresses: Tuple[str, ...]
    signature_threshold: int
    snapshot_ens: str = ""
    parent: Optional[ParentLink] = None
    freeze: Optional[FreezeParameters] = None

    @property
    def governance(self) -> GovernanceKind:
        return GovernanceKind.MULTISIG


@dataclass(frozen=True)
class AzoriusERC20DAO:
    """Token-voting organization."""
    dao_name: str
    token_name: str = ""
    token_symbol: str = ""
    token_supply: int = 0
    token_allocations: Tuple[TokenAllocation, ...] = ()
    quorum_percentage: int = 4
    voting_period: int = 0
    timelock: int = 0
    execution_period: int = 0
    locked: TokenLockType = TokenLockType.UNLOCKED
    max_total_supply: int = 0
    is_token_imported: bool = False
    token_import_address: Optional[str] = None
    is_votes_token: bool = True
    parent_allocation_amount: int = 0
    snapshot_ens: str = ""
    voting_strategy_type: VotingStrategyType = VotingStrategyType.LINEAR_ERC20
    parent: Optional[ParentLink] = None
    freeze: Optional[FreezeParameters] = None

    @property
    def governance(self) -> GovernanceKind:
        return GovernanceKind.AZORIUS


@dataclass(frozen=True)
class AzoriusERC721DAO:
    """NFT-voting organization."""
    dao_name: str
    nfts: Tuple[NFTVotingWeight, ...] = ()
    quorum_threshold: int = 1
    voting_period: int = 0
    timelock: int = 0
    execution_period: int = 0
    snapshot_ens: str = ""
    voting_strategy_type: VotingStrategyType = VotingStrategyType.LINEAR_ERC721
    parent: Optional[ParentLink] = None
    freeze: Optional[FreezeParameters] = None

    @property
    def governance(self) -> GovernanceKind:
        return GovernanceKind.AZORIUS


AzoriusDAO = Union[AzoriusERC20DAO, AzoriusERC721DAO]
OrganizationDescriptor = Union[MultisigDAO, AzoriusERC20DAO, AzoriusERC721DAO]


@dataclass(frozen=True)
class PredictedAddresses:
    """Every address the plan predicted, keyed by module role."""
    safe: str
    token: Optional[str] = None
    strategy: Optional[str] = None
    governance: Optional[str] = None
    token_claim: Optional[str] = None
    fractal_module: Optional[str] = None
    freeze_voting: Optional[str] = None
    freeze_guard: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "safe": self.safe,
            "token": self.token,
            "strategy": self.strategy,
            "governance": self.governance,
            "token_claim": self.token_claim,
            "fractal_module": self.fractal_module,
            "freeze_voting": self.freeze_voting,
            "freeze_guard": self.freeze_guard,
        }
        return {k: v for k, v in result.items() if v is not None}


__all__ = [
    "ZERO_ADDRESS",
    "SENTINEL_ADDRESS",
    "Operation",
    "GovernanceKind",
    "VotingStrategyType",
    "TokenLockType",
    "FreezeVotingType",
    "AtomicCall",
    "ProposalParameter",
    "ProposalTransaction",
    "TokenAllocation",
    "NFTVotingWeight",
    "FreezeParameters",
    "ParentLink",
    "MultisigDAO",
    "AzoriusERC20DAO",
    "AzoriusERC721DAO",
    "AzoriusDAO",
    "OrganizationDescriptor",
    "PredictedAddresses",
]
