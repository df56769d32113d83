"""Tests for ord_wallet.invocation — operations, invocation defaults, OUTGOING parsing."""

import dataclasses

import pytest

from ord_wallet.invocation import (
    CONSTRUCTION_OPERATIONS,
    OPERATION_TYPES,
    Amount,
    Balance,
    Create,
    InscriptionId,
    Invocation,
    Restore,
    parse_outgoing,
)

TXID = "ab" * 32


class TestParseOutgoing:
    @pytest.mark.parametrize("text,sats", [
        ("1000 sat", 1000),
        ("1 sats", 1),
        ("1000sat", 1000),
        ("0.1 btc", 10_000_000),
        ("1 BTC", 100_000_000),
        ("0.00000001 btc", 1),
    ])
    def test_amounts(self, text, sats):
        assert parse_outgoing(text) == Amount(sats)

    def test_inscription_id(self):
        outgoing = parse_outgoing(f"{TXID}i3")
        assert outgoing == InscriptionId(f"{TXID}i3")
        assert outgoing.txid == TXID

    @pytest.mark.parametrize("text", [
        "1000",
        "abc",
        "0 sat",
        "0.000000001 btc",
        "1.5 sat",
        f"{TXID}",
        f"{TXID[:-2]}i0",
        "-5 sat",
    ])
    def test_rejects(self, text):
        with pytest.raises(ValueError):
            parse_outgoing(text)


class TestInvocation:
    def test_defaults(self):
        invocation = Invocation(operation=Balance())
        assert invocation.name == "ord"
        assert invocation.no_sync is False
        assert invocation.server_url is None
        assert invocation.address is None

    def test_frozen(self):
        invocation = Invocation(operation=Balance())
        with pytest.raises(dataclasses.FrozenInstanceError):
            invocation.name = "other"

    def test_secrets_hidden_from_repr(self):
        assert "hunter2" not in repr(Create(passphrase="hunter2"))
        assert "abandon" not in repr(Restore(mnemonic="abandon about", passphrase="x"))


def test_every_operation_is_a_frozen_dataclass():
    assert len(OPERATION_TYPES) == 15
    for op_type in OPERATION_TYPES:
        assert dataclasses.is_dataclass(op_type)
        assert op_type.__dataclass_params__.frozen


def test_construction_operations():
    assert set(CONSTRUCTION_OPERATIONS) == {Create, Restore}
