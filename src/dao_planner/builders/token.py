"""Governance token and parent-token claim builders."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from web3 import Web3

from ..abi import (
    DEPLOY_MODULE,
    ERC20_APPROVE,
    ERC20_CLAIM_SETUP_PARAMS,
    LOCKABLE_TOKEN_INITIALIZE,
    VOTES_ERC20_SETUP_PARAMS,
    encode_call,
    encode_setup,
)
from ..config import ContractAddresses
from ..exceptions import ConfigurationError, OverAllocationError
from ..models import (
    AtomicCall,
    AzoriusERC20DAO,
    ProposalParameter,
    ProposalTransaction,
    TokenLockType,
)
from ..prediction import AddressPredictor
from .base import ModuleBuilder, ModuleSlot

logger = logging.getLogger(__name__)


def calculate_token_allocations(
    dao: AzoriusERC20DAO,
    safe_address: str,
) -> Tuple[List[str], List[int]]:
    """
    Split the token supply into (holders, amounts).

    Any supply left after the explicit allocations goes to the Safe treasury.

    Raises:
        OverAllocationError: If the allocations add up to more than the supply
    """
    owners = [Web3.to_checksum_address(a.address) for a in dao.token_allocations]
    amounts = [a.amount for a in dao.token_allocations]
    allocated = sum(amounts)

    if allocated > dao.token_supply:
        raise OverAllocationError(total_supply=dao.token_supply, allocated=allocated)

    if dao.token_supply > allocated:
        owners.append(Web3.to_checksum_address(safe_address))
        amounts.append(dao.token_supply - allocated)

    return owners, amounts


class TokenBuilder(ModuleBuilder):
    """
    Votes token for an ERC20-voting organization.

    Three branches:
    - unlocked token: legacy VotesERC20 template, setUp(bytes)
    - locked token: lockable template, initialize(...) with the Safe as owner
    - imported token: no deployment, the builder only holds the given address
    """

    slot_name = "token"

    def __init__(
        self,
        predictor: AddressPredictor,
        contracts: ContractAddresses,
        dao: AzoriusERC20DAO,
        safe_address: str,
        nonce: int,
    ):
        self._dao = dao
        self._safe_address = Web3.to_checksum_address(safe_address)
        self._imported_address: Optional[str] = None
        self._slot: Optional[ModuleSlot] = None

        if dao.is_token_imported:
            if dao.is_votes_token and dao.token_import_address:
                self._imported_address = Web3.to_checksum_address(dao.token_import_address)
            return

        if dao.locked == TokenLockType.LOCKED:
            template = contracts.require("votes_erc20_lockable_master_copy")
        else:
            template = contracts.require("votes_erc20_master_copy")

        super().__init__(predictor, template, nonce)
        self._slot.prepare(self._encode_initializer())

    @property
    def is_imported(self) -> bool:
        return self._dao.is_token_imported

    @property
    def deploys_token(self) -> bool:
        return self._slot is not None

    @property
    def slot(self) -> ModuleSlot:
        if self._slot is None:
            raise ConfigurationError("Imported token has no deployment slot", field="token")
        return self._slot

    @property
    def address(self) -> str:
        if self._imported_address is not None:
            return self._imported_address
        if self._slot is None:
            raise ConfigurationError(
                "Imported token is not a votes token; no governance token address",
                field="token_import_address",
            )
        return self._slot.address

    @property
    def initializer(self) -> bytes:
        return self.slot.initializer

    def build_deployment_call(self) -> AtomicCall:
        return self.slot.deployment_call()

    def _encode_initializer(self) -> bytes:
        dao = self._dao
        owners, amounts = calculate_token_allocations(dao, self._safe_address)

        if dao.locked == TokenLockType.LOCKED:
            return encode_call(
                LOCKABLE_TOKEN_INITIALIZE,
                [
                    (dao.token_name, dao.token_symbol),  # metadata_
                    list(zip(owners, amounts)),  # allocations_
                    self._safe_address,  # owner_
                    True,  # locked_
                    dao.max_total_supply,  # maxTotalSupply_
                ],
            )

        return encode_setup(
            VOTES_ERC20_SETUP_PARAMS,
            [dao.token_name, dao.token_symbol, owners, amounts],
        )

    def approve_call(self, spender: str, amount: int) -> AtomicCall:
        """token.approve(spender, amount), sent by the Safe."""
        return AtomicCall(
            to=self.address,
            data=encode_call(ERC20_APPROVE, [Web3.to_checksum_address(spender), amount]),
        )

    def create_token_proposal(self) -> ProposalTransaction:
        """The token deployment expressed as a governance proposal transaction."""
        slot = self.slot
        return ProposalTransaction(
            target_address=slot.deployment_call().to,
            function_name=DEPLOY_MODULE.split("(")[0],
            parameters=(
                ProposalParameter(signature="address", value=slot.template),
                ProposalParameter(signature="bytes", value="0x" + slot.initializer.hex()),
                ProposalParameter(signature="uint256", value=str(slot.nonce)),
            ),
        )


class TokenClaimBuilder(ModuleBuilder):
    """
    Claim module letting parent-token holders pull their share of the child token.

    The Safe funds the claim, so it must approve the claim module as a spender
    before the module is deployed.
    """

    slot_name = "token_claim"

    def __init__(
        self,
        predictor: AddressPredictor,
        contracts: ContractAddresses,
        safe_address: str,
        parent_token_address: str,
        child_token_address: str,
        allocation_amount: int,
        nonce: int,
    ):
        if not parent_token_address or not child_token_address:
            raise ConfigurationError(
                "Parent token address or predicted token address were not provided",
                field="parent_token_address",
            )
        if allocation_amount <= 0:
            raise ConfigurationError(
                "Parent allocation amount must be positive",
                field="parent_allocation_amount",
            )
        super().__init__(predictor, contracts.require("claim_erc20_master_copy"), nonce)
        self.allocation_amount = allocation_amount
        self._slot.prepare(
            encode_setup(
                ERC20_CLAIM_SETUP_PARAMS,
                [
                    0,  # deadlineBlock, 0 = never expires
                    Web3.to_checksum_address(safe_address),  # funder
                    Web3.to_checksum_address(parent_token_address),
                    Web3.to_checksum_address(child_token_address),
                    allocation_amount,
                ],
            )
        )


__all__ = ["TokenBuilder", "TokenClaimBuilder", "calculate_token_allocations"]
