"""Tests for safe.py: Safe setup encoding, proxy address prediction and creation calls."""

import pytest
from eth_abi import decode
from web3 import Web3

from dao_planner.abi import SAFE_PROXY_FACTORY_CREATE_PROXY, SAFE_SETUP, _argument_types, function_selector
from dao_planner.exceptions import ConfigurationError
from dao_planner.models import AzoriusERC20DAO, MultisigDAO
from dao_planner.safe import (
    SAFE_ADDRESSES,
    SafeCreationBuilder,
    encode_safe_setup,
    predict_safe_address,
)

from conftest import PROXY_CREATION_CODE, address

OWNER = address(0x0A)
OWNER_2 = address(0x0B)
HANDLER = SAFE_ADDRESSES["fallback_handler"]


# ============ SAFE_ADDRESSES ============


class TestSafeAddresses:
    def test_addresses_are_checksummed(self):
        for key, addr in SAFE_ADDRESSES.items():
            assert addr == Web3.to_checksum_address(addr), f"{key} address is not checksummed"


# ============ encode_safe_setup ============


class TestEncodeSafeSetup:
    def test_layout(self):
        data = encode_safe_setup([OWNER, OWNER_2], 2, HANDLER)
        assert data[:4] == function_selector(SAFE_SETUP)

        owners, threshold, to, payload, handler, token, payment, receiver = decode(
            _argument_types(SAFE_SETUP), data[4:]
        )
        assert [Web3.to_checksum_address(o) for o in owners] == [OWNER, OWNER_2]
        assert threshold == 2
        assert int(to, 16) == 0
        assert payload == b""
        assert Web3.to_checksum_address(handler) == HANDLER
        assert int(token, 16) == 0 and payment == 0 and int(receiver, 16) == 0

    def test_requires_owners(self):
        with pytest.raises(ConfigurationError):
            encode_safe_setup([], 1, HANDLER)

    @pytest.mark.parametrize("threshold", [0, 3])
    def test_threshold_range(self, threshold):
        with pytest.raises(ConfigurationError):
            encode_safe_setup([OWNER, OWNER_2], threshold, HANDLER)


# ============ predict_safe_address ============


class TestPredictSafeAddress:
    def _predict(self, initializer=None, salt=0):
        return predict_safe_address(
            SAFE_ADDRESSES["proxy_factory"],
            SAFE_ADDRESSES["safe_singleton"],
            PROXY_CREATION_CODE,
            initializer or encode_safe_setup([OWNER], 1, HANDLER),
            salt,
        )

    def test_deterministic(self):
        assert self._predict() == self._predict()

    def test_salt_changes_address(self):
        assert self._predict(salt=0) != self._predict(salt=42)

    def test_owners_change_address(self):
        other = encode_safe_setup([OWNER_2], 1, HANDLER)
        assert self._predict() != self._predict(initializer=other)


# ============ SafeCreationBuilder ============


class TestSafeCreationBuilder:
    def test_initial_owners(self, contracts, relay):
        builder = SafeCreationBuilder(contracts, relay, PROXY_CREATION_CODE)

        assert builder.initial_owners(AzoriusERC20DAO(dao_name="Token DAO")) == [relay]
        multisig = MultisigDAO("Signers", (OWNER.lower(), OWNER_2), 2)
        assert builder.initial_owners(multisig) == [OWNER, OWNER_2, relay]

    def test_build(self, contracts, relay):
        builder = SafeCreationBuilder(contracts, relay, PROXY_CREATION_CODE)
        creation = builder.build(AzoriusERC20DAO(dao_name="Token DAO"), 77)

        assert creation.owners == (relay,)
        assert creation.call.to == contracts.safe_proxy_factory
        assert creation.call.selector == function_selector(SAFE_PROXY_FACTORY_CREATE_PROXY)

        singleton, initializer, salt_nonce = decode(
            ["address", "bytes", "uint256"], creation.call.data[4:]
        )
        assert Web3.to_checksum_address(singleton) == contracts.safe_singleton
        assert initializer == encode_safe_setup([relay], 1, contracts.safe_fallback_handler)
        assert salt_nonce == 77
        assert creation.address == predict_safe_address(
            contracts.safe_proxy_factory,
            contracts.safe_singleton,
            PROXY_CREATION_CODE,
            initializer,
            77,
        )

    def test_defaults_to_canonical_safe(self, relay):
        from dao_planner.config import ContractAddresses

        builder = SafeCreationBuilder(ContractAddresses(), relay, PROXY_CREATION_CODE)
        creation = builder.build(AzoriusERC20DAO(dao_name="Token DAO"), 1)
        assert creation.call.to == SAFE_ADDRESSES["proxy_factory"]

    def test_requires_creation_code(self, contracts, relay):
        with pytest.raises(ConfigurationError):
            SafeCreationBuilder(contracts, relay, b"")
