"""Safe proxy creation and address prediction.

Uses Safe's canonical v1.4.1 infrastructure (deployed on all EVM chains):
- SafeProxyFactory for CREATE2 proxy deployment
- SafeL2 singleton as implementation
- CompatibilityFallbackHandler
- MultiSendCallOnly as the batch relay

The Safe is created with the relay as a temporary owner (threshold 1) so the
relay can authorize the inner batch in the same transaction.

References:
- https://github.com/safe-global/safe-smart-account
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from eth_abi import encode
from web3 import Web3

from .abi import SAFE_PROXY_FACTORY_CREATE_PROXY, SAFE_SETUP, encode_call
from .config import ContractAddresses
from .exceptions import ConfigurationError
from .models import ZERO_ADDRESS, AtomicCall, GovernanceKind, OrganizationDescriptor
from .prediction import create2_address

logger = logging.getLogger(__name__)


# ============ Canonical Safe Addresses ============
# Same on all EVM chains (CREATE2 deterministic deployment)

SAFE_ADDRESSES = {
    "proxy_factory": "0x4e1DCf7AD4e460CfD30791CCC4F9c8a4f820ec67",
    "safe_singleton": "0x29fcB43b46531BcA003ddC8FCB67FFE91900C762",  # SafeL2 v1.4.1
    "fallback_handler": "0xfd0732Dc9E303f09fCEf3a7388Ad10A83459Ec99",
    "multi_send_call_only": "0x9641d764fc13c8B624c04430C7356C1C7C8102e2",
}


def encode_safe_setup(
    owners: Sequence[str],
    threshold: int,
    fallback_handler: str,
) -> bytes:
    """Encode Safe.setup() calldata.

    Safe.setup(
        address[] _owners,
        uint256 _threshold,
        address to,               # no delegatecall during setup
        bytes data,
        address fallbackHandler,
        address paymentToken,
        uint256 payment,
        address paymentReceiver
    )
    """
    if not owners:
        raise ConfigurationError("Safe needs at least one owner", field="owners")
    if not 1 <= threshold <= len(owners):
        raise ConfigurationError(f"Invalid threshold {threshold}", field="threshold")

    return encode_call(
        SAFE_SETUP,
        [
            [Web3.to_checksum_address(o) for o in owners],
            threshold,
            ZERO_ADDRESS,  # to
            b"",  # data
            Web3.to_checksum_address(fallback_handler),
            ZERO_ADDRESS,  # paymentToken
            0,  # payment
            ZERO_ADDRESS,  # paymentReceiver
        ],
    )


def predict_safe_address(
    factory: str,
    singleton: str,
    proxy_creation_code: bytes,
    initializer: bytes,
    salt_nonce: int,
) -> str:
    """Predict the CREATE2 address of a Safe proxy before deployment.

    Same algorithm as SafeProxyFactory.createProxyWithNonce():
    - salt = keccak256(keccak256(initializer) + saltNonce)
    - address = CREATE2(factory, salt, keccak256(proxyCreationCode + uint256(singleton)))
    """
    salt = Web3.keccak(Web3.keccak(initializer) + encode(["uint256"], [salt_nonce]))
    deployment_code = proxy_creation_code + encode(["uint256"], [int(singleton, 16)])
    return create2_address(factory, salt, Web3.keccak(deployment_code))


@dataclass(frozen=True)
class SafeCreation:
    """A Safe creation call together with the address it will create."""
    address: str
    call: AtomicCall
    owners: tuple
    salt_nonce: int


class SafeCreationBuilder:
    """Builds the createProxyWithNonce() call that opens a plan."""

    def __init__(
        self,
        contracts: ContractAddresses,
        relay_address: str,
        proxy_creation_code: bytes,
    ):
        if not proxy_creation_code:
            raise ConfigurationError(
                "Safe proxy creation code is required to predict the Safe address",
                field="proxy_creation_code",
            )
        self._factory = contracts.safe_proxy_factory or SAFE_ADDRESSES["proxy_factory"]
        self._singleton = contracts.safe_singleton or SAFE_ADDRESSES["safe_singleton"]
        self._fallback_handler = (
            contracts.safe_fallback_handler or SAFE_ADDRESSES["fallback_handler"]
        )
        self._relay_address = Web3.to_checksum_address(relay_address)
        self._proxy_creation_code = bytes(proxy_creation_code)

    def initial_owners(self, descriptor: OrganizationDescriptor) -> List[str]:
        """Azorius Safes start with only the relay; multisigs with their signers plus the relay."""
        if descriptor.governance == GovernanceKind.AZORIUS:
            return [self._relay_address]
        return [Web3.to_checksum_address(a) for a in descriptor.trusted_addresses] + [
            self._relay_address
        ]

    def build(
        self,
        descriptor: OrganizationDescriptor,
        salt_nonce: int,
        owners: Optional[Sequence[str]] = None,
    ) -> SafeCreation:
        owners = list(owners) if owners is not None else self.initial_owners(descriptor)
        initializer = encode_safe_setup(owners, 1, self._fallback_handler)
        address = predict_safe_address(
            self._factory,
            self._singleton,
            self._proxy_creation_code,
            initializer,
            salt_nonce,
        )
        call = AtomicCall(
            to=Web3.to_checksum_address(self._factory),
            data=encode_call(
                SAFE_PROXY_FACTORY_CREATE_PROXY,
                [Web3.to_checksum_address(self._singleton), initializer, salt_nonce],
            ),
        )
        logger.info(f"Predicted Safe at {address} with {len(owners)} initial owners")
        return SafeCreation(address=address, call=call, owners=tuple(owners), salt_nonce=salt_nonce)


__all__ = [
    "SAFE_ADDRESSES",
    "SafeCreation",
    "SafeCreationBuilder",
    "encode_safe_setup",
    "predict_safe_address",
]
