"""
Organization plan assembly.

Turns an organization descriptor into one MultiSend transaction that creates
the Safe, deploys every module and hands control of the Safe to its
governance, all or nothing.

Plans are built in two phases:
1. Every builder computes its initializer and predicted address. Builders may
   read the addresses of builders created before them; nothing is deployed yet.
2. Calls are linearized. A call into a module always comes after that
   module's deployment call.

The plan has an outer batch (run by the relay on behalf of the sender) and an
inner batch (run by the Safe through execTransaction, authorized by the relay):

    outer: [create Safe] -> [token] -> strategy -> governance -> [fractal module]
           -> execTransaction(inner) -> [token claim]
    inner: [metadata] -> setAzorius -> enableModule -> [sub-organization modules]
           -> addOwner(governance) -> [removeOwner(existing)...] -> removeOwner(relay)
           -> [approve(claim)]
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from web3 import Web3

from .batch import BatchEnvelope, with_relay_approval
from .builders.ancillary import AncillaryModuleBuilder
from .builders.freeze import FreezeGuardBuilder, FreezeVotingBuilder
from .builders.governance import GovernanceModuleBuilder
from .builders.metadata import MetadataBuilder
from .builders.multisig import MultisigOwnerBuilder
from .builders.strategy import VotingStrategyBuilder
from .builders.token import TokenBuilder, TokenClaimBuilder
from .chain_reader import ConstantReader, RPCConstantReader
from .config import ContractAddresses, PlannerSettings, load_settings
from .entropy import EntropySource, SecureEntropy
from .exceptions import ConfigurationError, UnsupportedVariantError
from .logging_utils import OperationType, PlannerLogger
from .models import (
    AtomicCall,
    AzoriusDAO,
    AzoriusERC20DAO,
    AzoriusERC721DAO,
    GovernanceKind,
    MultisigDAO,
    OrganizationDescriptor,
    PredictedAddresses,
    VotingStrategyType,
)
from .prediction import AddressPredictor
from .safe import SAFE_ADDRESSES, SafeCreationBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrganizationPlan:
    """The assembled plan, ready to hand to a broadcaster."""
    safe_address: str
    relay_address: str
    outer: BatchEnvelope
    inner: BatchEnvelope
    predicted: PredictedAddresses
    outer_labels: Tuple[str, ...] = ()
    inner_labels: Tuple[str, ...] = ()

    def call_labels(self, batch: str) -> List[str]:
        """Labels of the calls in ``batch`` ("outer" or "inner"), in execution order."""
        return list(self.outer_labels if batch == "outer" else self.inner_labels)

    def encode(self) -> bytes:
        """MultiSend payload of the outer batch."""
        return self.outer.encode()

    def transaction(self) -> AtomicCall:
        """The single transaction to broadcast: relay.multiSend(outer)."""
        return AtomicCall(to=self.relay_address, data=self.outer.multisend_calldata())


class _PlanRecorder:
    """Collects the labelled outer/inner calls and predicted addresses of one plan."""

    def __init__(self, planner_logger: PlannerLogger, safe_address: str):
        self._logger = planner_logger
        self.safe_address = safe_address
        self.outer: List[AtomicCall] = []
        self.inner: List[AtomicCall] = []
        self.outer_labels: List[str] = []
        self.inner_labels: List[str] = []
        self.predicted: Dict[str, str] = {"safe": safe_address}

    def predict(self, role: str, address: str) -> None:
        self.predicted[role] = address
        self._logger.log_prediction(role, address)

    def add_outer(self, label: str, call: AtomicCall) -> None:
        self._logger.log_call("outer", len(self.outer), label, call)
        self.outer.append(call)
        self.outer_labels.append(label)

    def add_inner(self, label: str, call: AtomicCall) -> None:
        self._logger.log_call("inner", len(self.inner), label, call)
        self.inner.append(call)
        self.inner_labels.append(label)

    def inner_batch(self) -> BatchEnvelope:
        return BatchEnvelope(tuple(self.inner))

    def finish(self, relay: str, inner: BatchEnvelope) -> OrganizationPlan:
        return OrganizationPlan(
            safe_address=self.safe_address,
            relay_address=Web3.to_checksum_address(relay),
            outer=BatchEnvelope(tuple(self.outer)),
            inner=inner,
            predicted=PredictedAddresses(**self.predicted),
            outer_labels=tuple(self.outer_labels),
            inner_labels=tuple(self.inner_labels),
        )


class OrganizationAssembler:
    """
    Builds organization plans.

    Usage:
        assembler = OrganizationAssembler.from_settings(load_settings())
        plan = await assembler.build_organization_plan(descriptor)
        tx = plan.transaction()
    """

    def __init__(
        self,
        contracts: ContractAddresses,
        reader: ConstantReader,
        entropy: Optional[EntropySource] = None,
        planner_logger: Optional[PlannerLogger] = None,
        proxy_creation_code: bytes = b"",
    ):
        self._contracts = contracts
        self._reader = reader
        self._entropy = entropy or SecureEntropy()
        self._logger = planner_logger or PlannerLogger()
        self._proxy_creation_code = proxy_creation_code

    @classmethod
    def from_settings(
        cls,
        settings: PlannerSettings,
        reader: Optional[ConstantReader] = None,
        entropy: Optional[EntropySource] = None,
    ) -> "OrganizationAssembler":
        return cls(
            contracts=settings.contracts,
            reader=reader or RPCConstantReader(settings.rpc_url, settings.rpc_timeout_seconds),
            entropy=entropy,
            planner_logger=PlannerLogger(config=settings.logging),
            proxy_creation_code=settings.proxy_creation_code,
        )

    @property
    def planner_logger(self) -> PlannerLogger:
        return self._logger

    async def build_organization_plan(
        self,
        descriptor: OrganizationDescriptor,
        *,
        safe_address: Optional[str] = None,
        create_safe_call: Optional[AtomicCall] = None,
        existing_owners: Optional[Sequence[str]] = None,
        set_name: bool = False,
        set_snapshot: bool = False,
    ) -> OrganizationPlan:
        """
        Build the deployment plan for ``descriptor``.

        Args:
            descriptor: Organization to deploy
            safe_address: Address of the Safe (required with create_safe_call or existing_owners)
            create_safe_call: Pre-built Safe creation call; built here when omitted
            existing_owners: Owners to remove when attaching governance to a deployed Safe.
                The relay must already be the Safe's most recently added owner.
            set_name: Write the organization name to the key-value registry
            set_snapshot: Write the snapshot ENS name to the key-value registry

        Raises:
            ConfigurationError: Missing addresses/parameters
            ExternalReadFailure: The quorum denominator read failed
            UnsupportedVariantError: Unknown organization or strategy kind
        """
        relay = self._contracts.multisend_call_only or SAFE_ADDRESSES["multi_send_call_only"]
        safe_address, create_safe_call = self._resolve_safe(
            descriptor, relay, safe_address, create_safe_call, existing_owners
        )

        with self._logger.operation_context(
            OperationType.PLAN_ASSEMBLY,
            safe_address,
            governance=descriptor.governance.value,
        ) as ctx:
            if descriptor.governance == GovernanceKind.AZORIUS:
                plan = await self._build_azorius_plan(
                    descriptor,
                    safe_address,
                    relay,
                    create_safe_call,
                    existing_owners,
                    set_name,
                    set_snapshot,
                )
            elif descriptor.governance == GovernanceKind.MULTISIG:
                plan = self._build_multisig_plan(
                    descriptor, safe_address, relay, create_safe_call, set_name, set_snapshot
                )
            else:
                raise UnsupportedVariantError("organization kind", descriptor.governance)

            ctx.metadata["outer_calls"] = len(plan.outer)
            ctx.metadata["inner_calls"] = len(plan.inner)

        self._logger.log_plan_summary(
            plan.safe_address, plan.outer_labels, plan.inner_labels, plan.predicted.to_dict()
        )
        return plan

    def _resolve_safe(
        self,
        descriptor: OrganizationDescriptor,
        relay: str,
        safe_address: Optional[str],
        create_safe_call: Optional[AtomicCall],
        existing_owners: Optional[Sequence[str]],
    ) -> Tuple[str, Optional[AtomicCall]]:
        if existing_owners is not None:
            if descriptor.governance != GovernanceKind.AZORIUS:
                raise ConfigurationError(
                    "Only governance modules can be attached to an existing Safe",
                    field="existing_owners",
                )
            if create_safe_call is not None:
                raise ConfigurationError(
                    "An existing Safe cannot also be created", field="create_safe_call"
                )
            if not safe_address:
                raise ConfigurationError("Existing Safe address is required", field="safe_address")
            return Web3.to_checksum_address(safe_address), None

        if create_safe_call is not None:
            if not safe_address:
                raise ConfigurationError(
                    "Safe address is required with a pre-built creation call",
                    field="safe_address",
                )
            return Web3.to_checksum_address(safe_address), create_safe_call

        if safe_address:
            raise ConfigurationError(
                "A Safe address without a creation call or existing owners is ambiguous",
                field="create_safe_call",
            )

        creation = SafeCreationBuilder(
            self._contracts, relay, self._proxy_creation_code
        ).build(descriptor, self._entropy.next_nonce())
        return creation.address, creation.call

    # =========================================================================
    # Azorius organizations
    # =========================================================================

    async def _build_azorius_plan(
        self,
        dao: AzoriusDAO,
        safe_address: str,
        relay: str,
        create_safe_call: Optional[AtomicCall],
        existing_owners: Optional[Sequence[str]],
        set_name: bool,
        set_snapshot: bool,
    ) -> OrganizationPlan:
        strategy_type = dao.voting_strategy_type
        if strategy_type == VotingStrategyType.LINEAR_ERC20 and not isinstance(dao, AzoriusERC20DAO):
            raise ConfigurationError("ERC20 voting needs an ERC20 descriptor", field="voting_strategy_type")
        if strategy_type == VotingStrategyType.LINEAR_ERC721 and not isinstance(dao, AzoriusERC721DAO):
            raise ConfigurationError("ERC721 voting needs an ERC721 descriptor", field="voting_strategy_type")

        predictor = AddressPredictor(self._contracts.require("zodiac_module_proxy_factory"))
        recorder = _PlanRecorder(self._logger, safe_address)
        parent = dao.parent

        # Phase 1: initializers and predicted addresses

        token: Optional[TokenBuilder] = None
        if strategy_type == VotingStrategyType.LINEAR_ERC20:
            token = TokenBuilder(
                predictor, self._contracts, dao, safe_address, self._entropy.next_nonce()
            )
            recorder.predict("token", token.address)

        strategy = VotingStrategyBuilder(
            predictor,
            self._contracts,
            dao,
            safe_address,
            self._entropy.next_nonce(),
            token_address=token.address if token else None,
        )
        async with self._logger.async_operation_context(
            OperationType.CONSTANT_READ, strategy.slot.template
        ):
            recorder.predict("strategy", await strategy.prepare(self._reader))

        governance = GovernanceModuleBuilder(
            predictor,
            self._contracts,
            dao,
            safe_address,
            relay,
            strategy.address,
            self._entropy.next_nonce(),
        )
        recorder.predict("governance", governance.address)

        claim: Optional[TokenClaimBuilder] = None
        if (
            token is not None
            and parent is not None
            and parent.token_address
            and dao.parent_allocation_amount
        ):
            claim = TokenClaimBuilder(
                predictor,
                self._contracts,
                safe_address,
                parent.token_address,
                token.address,
                dao.parent_allocation_amount,
                self._entropy.next_nonce(),
            )
            recorder.predict("token_claim", claim.address)

        fractal, freeze_voting, freeze_guard = self._sub_organization_builders(
            dao, predictor, recorder, governance_address=governance.address
        )

        # Phase 2: ordering

        self._add_metadata_calls(recorder, dao, set_name, set_snapshot)
        recorder.add_inner("strategy.setAzorius", strategy.set_governance_call(governance.address))
        recorder.add_inner("safe.enableModule(governance)", governance.enable_module_call())
        self._add_sub_organization_calls(recorder, fractal, freeze_voting, freeze_guard)

        # Governance becomes an owner before anyone else leaves
        recorder.add_inner("safe.addOwnerWithThreshold(governance)", governance.add_as_owner_call())
        for call in governance.remove_owner_calls(existing_owners or []):
            recorder.add_inner("safe.removeOwner(existing)", call)
        recorder.add_inner("safe.removeOwner(relay)", governance.remove_relay_owner_call())

        if claim is not None:
            recorder.add_inner(
                "token.approve(claim)", token.approve_call(claim.address, claim.allocation_amount)
            )

        if create_safe_call is not None:
            recorder.add_outer("safe.create", create_safe_call)
        if token is not None and token.deploys_token:
            recorder.add_outer("deploy.token", token.build_deployment_call())
        recorder.add_outer("deploy.strategy", strategy.build_deployment_call())
        recorder.add_outer("deploy.governance", governance.build_deployment_call())
        if fractal is not None:
            recorder.add_outer("deploy.fractal_module", fractal.build_deployment_call())

        inner = recorder.inner_batch()
        recorder.add_outer("safe.execTransaction(inner)", with_relay_approval(safe_address, relay, inner))

        # Deployed last so the approval above is already in place
        if claim is not None:
            recorder.add_outer("deploy.token_claim", claim.build_deployment_call())

        return recorder.finish(relay, inner)

    # =========================================================================
    # Multisig organizations
    # =========================================================================

    def _build_multisig_plan(
        self,
        dao: MultisigDAO,
        safe_address: str,
        relay: str,
        create_safe_call: AtomicCall,
        set_name: bool,
        set_snapshot: bool,
    ) -> OrganizationPlan:
        owners = MultisigOwnerBuilder(dao, safe_address, relay)
        recorder = _PlanRecorder(self._logger, safe_address)

        fractal = freeze_voting = freeze_guard = None
        if dao.parent is not None:
            predictor = AddressPredictor(self._contracts.require("zodiac_module_proxy_factory"))
            fractal, freeze_voting, freeze_guard = self._sub_organization_builders(
                dao, predictor, recorder
            )

        self._add_metadata_calls(recorder, dao, set_name, set_snapshot)
        self._add_sub_organization_calls(recorder, fractal, freeze_voting, freeze_guard)
        recorder.add_inner("safe.removeOwner(relay)", owners.remove_relay_owner_call())

        recorder.add_outer("safe.create", create_safe_call)
        if fractal is not None:
            recorder.add_outer("deploy.fractal_module", fractal.build_deployment_call())
        inner = recorder.inner_batch()
        recorder.add_outer("safe.execTransaction(inner)", with_relay_approval(safe_address, relay, inner))

        return recorder.finish(relay, inner)

    # =========================================================================
    # Shared steps
    # =========================================================================

    def _sub_organization_builders(
        self,
        dao: OrganizationDescriptor,
        predictor: AddressPredictor,
        recorder: _PlanRecorder,
        governance_address: Optional[str] = None,
    ) -> Tuple[
        Optional[AncillaryModuleBuilder],
        Optional[FreezeVotingBuilder],
        Optional[FreezeGuardBuilder],
    ]:
        parent = dao.parent
        if parent is None:
            return None, None, None
        if dao.freeze is None:
            raise ConfigurationError(
                "Sub-organizations need freeze parameters", field="freeze"
            )
        safe_address = recorder.safe_address

        fractal = None
        if parent.attach_fractal_module:
            fractal = AncillaryModuleBuilder(
                predictor,
                self._contracts,
                safe_address,
                self._entropy.next_nonce(),
                parent_address=parent.address,
            )
            recorder.predict("fractal_module", fractal.address)

        freeze_voting = FreezeVotingBuilder(
            predictor, self._contracts, parent, dao.freeze, self._entropy.next_nonce()
        )
        recorder.predict("freeze_voting", freeze_voting.address)

        freeze_guard = FreezeGuardBuilder(
            predictor,
            self._contracts,
            parent,
            dao.freeze,
            freeze_voting.address,
            safe_address,
            dao.governance,
            self._entropy.next_nonce(),
            governance_address=governance_address,
        )
        recorder.predict("freeze_guard", freeze_guard.address)

        return fractal, freeze_voting, freeze_guard

    def _add_sub_organization_calls(
        self,
        recorder: _PlanRecorder,
        fractal: Optional[AncillaryModuleBuilder],
        freeze_voting: Optional[FreezeVotingBuilder],
        freeze_guard: Optional[FreezeGuardBuilder],
    ) -> None:
        if freeze_voting is None or freeze_guard is None:
            return
        if fractal is not None:
            recorder.add_inner("safe.enableModule(fractal_module)", fractal.enable_module_call())
        recorder.add_inner("deploy.freeze_voting", freeze_voting.build_deployment_call())
        recorder.add_inner("freeze_voting.setUp", freeze_voting.setup_call())
        recorder.add_inner("deploy.freeze_guard", freeze_guard.build_deployment_call())
        recorder.add_inner("setGuard(freeze_guard)", freeze_guard.set_guard_call())

    def _add_metadata_calls(
        self,
        recorder: _PlanRecorder,
        dao: OrganizationDescriptor,
        set_name: bool,
        set_snapshot: bool,
    ) -> None:
        if not (set_name or set_snapshot):
            return
        metadata = MetadataBuilder(self._contracts)
        if set_name:
            recorder.add_inner("registry.updateValues(daoName)", metadata.update_name_call(dao.dao_name))
        if set_snapshot:
            recorder.add_inner(
                "registry.updateValues(snapshotENS)", metadata.update_snapshot_call(dao.snapshot_ens)
            )


async def build_organization_plan(
    descriptor: OrganizationDescriptor,
    settings: Optional[PlannerSettings] = None,
    reader: Optional[ConstantReader] = None,
    entropy: Optional[EntropySource] = None,
    **kwargs,
) -> OrganizationPlan:
    """
    Build a plan with settings loaded from the environment.

    Opens (and closes) its own RPC reader unless one is given.
    """
    settings = settings or load_settings()
    owned_reader: Optional[RPCConstantReader] = None
    if reader is None:
        owned_reader = RPCConstantReader(settings.rpc_url, settings.rpc_timeout_seconds)
        reader = owned_reader

    try:
        assembler = OrganizationAssembler.from_settings(settings, reader=reader, entropy=entropy)
        return await assembler.build_organization_plan(descriptor, **kwargs)
    finally:
        if owned_reader is not None:
            await owned_reader.close()


__all__ = ["OrganizationAssembler", "OrganizationPlan", "build_organization_plan"]
