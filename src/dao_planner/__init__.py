"""Deterministic deployment planning for Safe-based organizations."""

from .assembler import OrganizationAssembler, OrganizationPlan, build_organization_plan
from .batch import BatchEnvelope, build_relay_signature, encode_multisend, with_relay_approval
from .chain_reader import ConstantReader, RPCConstantReader
from .config import ContractAddresses, PlannerSettings, load_settings
from .entropy import EntropySource, SecureEntropy, SeededEntropy
from .exceptions import (
    ConfigurationError,
    ExternalReadFailure,
    MissingTemplateError,
    NotYetPredictedError,
    OverAllocationError,
    PlannerException,
    UnsupportedVariantError,
)
from .models import (
    AtomicCall,
    AzoriusERC20DAO,
    AzoriusERC721DAO,
    FreezeParameters,
    GovernanceKind,
    MultisigDAO,
    NFTVotingWeight,
    Operation,
    ParentLink,
    PredictedAddresses,
    TokenAllocation,
    TokenLockType,
    VotingStrategyType,
)
from .prediction import AddressPredictor, predict_address

__version__ = "0.1.0"

__all__ = [
    "OrganizationAssembler",
    "OrganizationPlan",
    "build_organization_plan",
    "BatchEnvelope",
    "build_relay_signature",
    "encode_multisend",
    "with_relay_approval",
    "ConstantReader",
    "RPCConstantReader",
    "ContractAddresses",
    "PlannerSettings",
    "load_settings",
    "EntropySource",
    "SecureEntropy",
    "SeededEntropy",
    "ConfigurationError",
    "ExternalReadFailure",
    "MissingTemplateError",
    "NotYetPredictedError",
    "OverAllocationError",
    "PlannerException",
    "UnsupportedVariantError",
    "AtomicCall",
    "AzoriusERC20DAO",
    "AzoriusERC721DAO",
    "FreezeParameters",
    "GovernanceKind",
    "MultisigDAO",
    "NFTVotingWeight",
    "Operation",
    "ParentLink",
    "PredictedAddresses",
    "TokenAllocation",
    "TokenLockType",
    "VotingStrategyType",
    "AddressPredictor",
    "predict_address",
]
