"""Tests for prediction.py: clone bytecode, salts and CREATE2 addresses."""

import pytest
from eth_abi import encode
from web3 import Web3

from dao_planner.prediction import (
    AddressPredictor,
    create2_address,
    generate_clone_bytecode,
    generate_salt,
    predict_address,
)

from conftest import address


# ============ Fixtures ============

FACTORY = address(0xFAC)
TEMPLATE = address(0x7E3)
TEMPLATE_2 = address(0x7E4)
INIT = bytes.fromhex("a4f9edbf") + b"\x00" * 32
NONCE = 123456789


# ============ generate_clone_bytecode ============


class TestCloneBytecode:
    def test_layout(self):
        code = generate_clone_bytecode(TEMPLATE)
        assert code[:19].hex() == "602d8060093d393df3363d3d373d3d3d363d73"
        assert code[19:39] == bytes.fromhex(TEMPLATE[2:])
        assert code[39:].hex() == "5af43d82803e903d91602b57fd5bf3"
        assert len(code) == 54

    def test_accepts_lowercase_template(self):
        assert generate_clone_bytecode(TEMPLATE.lower()) == generate_clone_bytecode(TEMPLATE)

    @pytest.mark.parametrize("bad", ["", "0x1234", "not-an-address", None])
    def test_malformed_template_rejected(self, bad):
        with pytest.raises(ValueError):
            generate_clone_bytecode(bad)


# ============ generate_salt ============


class TestGenerateSalt:
    def test_matches_formula(self):
        expected = Web3.keccak(Web3.keccak(INIT) + encode(["uint256"], [NONCE]))
        assert generate_salt(INIT, NONCE) == expected

    def test_nonce_changes_salt(self):
        assert generate_salt(INIT, 1) != generate_salt(INIT, 2)

    def test_initializer_changes_salt(self):
        assert generate_salt(INIT, NONCE) != generate_salt(INIT + b"\x01", NONCE)

    def test_nonce_range(self):
        generate_salt(INIT, 2**256 - 1)
        with pytest.raises(ValueError):
            generate_salt(INIT, 2**256)
        with pytest.raises(ValueError):
            generate_salt(INIT, -1)

    def test_initializer_must_be_bytes(self):
        with pytest.raises(ValueError):
            generate_salt("0x1234", NONCE)


# ============ create2_address ============


class TestCreate2Address:
    """EIP-1014 reference vectors."""

    def test_zero_deployer(self):
        addr = create2_address(
            "0x0000000000000000000000000000000000000000",
            b"\x00" * 32,
            Web3.keccak(b"\x00"),
        )
        assert addr == "0x4D1A2e2bB4F88F0250f26Ffff098B0b30B26BF38"

    def test_deadbeef_deployer(self):
        addr = create2_address(
            "0xdeadbeef00000000000000000000000000000000",
            b"\x00" * 32,
            Web3.keccak(b"\x00"),
        )
        assert addr == "0xB928f69Bb1D91Cd65274e3c79d8986362984fDA3"

    def test_salt_length_checked(self):
        with pytest.raises(ValueError):
            create2_address(FACTORY, b"\x00" * 31, Web3.keccak(b"\x00"))


# ============ predict_address ============


class TestPredictAddress:
    def test_returns_checksummed_address(self):
        addr = predict_address(FACTORY, TEMPLATE, INIT, NONCE)
        assert addr == Web3.to_checksum_address(addr)
        assert len(addr) == 42

    def test_deterministic(self):
        """Same inputs always produce the same address."""
        assert predict_address(FACTORY, TEMPLATE, INIT, NONCE) == predict_address(
            FACTORY, TEMPLATE, INIT, NONCE
        )

    def test_composition(self):
        expected = create2_address(
            FACTORY,
            generate_salt(INIT, NONCE),
            Web3.keccak(generate_clone_bytecode(TEMPLATE)),
        )
        assert predict_address(FACTORY, TEMPLATE, INIT, NONCE) == expected

    @pytest.mark.parametrize(
        "override",
        [
            {"factory": address(0xFAD)},
            {"template": TEMPLATE_2},
            {"initializer": INIT + b"\x00"},
            {"nonce": NONCE + 1},
        ],
    )
    def test_every_input_matters(self, override):
        base = {"factory": FACTORY, "template": TEMPLATE, "initializer": INIT, "nonce": NONCE}
        changed = {**base, **override}
        assert predict_address(**base) != predict_address(**changed)

    def test_malformed_factory_rejected(self):
        with pytest.raises(ValueError):
            predict_address("0xabc", TEMPLATE, INIT, NONCE)


class TestAddressPredictor:
    def test_binds_factory(self):
        predictor = AddressPredictor(FACTORY.lower())
        assert predictor.factory == FACTORY
        assert predictor.predict(TEMPLATE, INIT, NONCE) == predict_address(
            FACTORY, TEMPLATE, INIT, NONCE
        )

    def test_rejects_bad_factory(self):
        with pytest.raises(ValueError):
            AddressPredictor("factory")
