"""Tests for ord_wallet.keystore — wallet files and BIP86 derivation."""

import json
import os
import stat

import pytest

from ord_wallet import keystore as ks
from ord_wallet.config import Settings
from ord_wallet.errors import ConstructionError, OperationError

from conftest import FIRST_RECEIVE_ADDRESS, TEST_MNEMONIC


class TestDerivation:
    def test_bip86_first_receive_address(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        assert store.address(False, 0) == FIRST_RECEIVE_ADDRESS

    def test_change_differs_from_receive(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        assert store.address(True, 0) != store.address(False, 0)
        assert store.address(True, 0).startswith("bc1p")

    def test_passphrase_changes_keys(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC, passphrase="TREZOR")
        assert store.address(False, 0) != FIRST_RECEIVE_ADDRESS

    def test_testnet_addresses(self, wallet_project):
        settings = Settings(chain="signet", root=str(wallet_project))
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        assert store.address(False, 0).startswith("tb1p")
        ks.use_chain("mainnet")

    def test_derivation_path(self):
        assert ks.derivation_path("mainnet") == "m/86'/0'/0'"
        assert ks.derivation_path("testnet") == "m/86'/1'/0'"


class TestCreateRestoreLoad:
    def test_create_writes_private_file(self, settings):
        store = ks.create("ord", settings)
        assert len(store.mnemonic.split()) == 12
        path = settings.wallet_dir / "ord.json"
        assert path.exists()
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        data = json.loads(path.read_text())
        assert data["mnemonic"] == store.mnemonic
        assert data["chain"] == "mainnet"
        assert data["next_index"] == 0
        assert data["pending"] == []

    def test_create_refuses_overwrite(self, settings):
        ks.create("ord", settings)
        with pytest.raises(OperationError, match="already exists"):
            ks.create("ord", settings)

    def test_restore_normalizes_whitespace(self, settings):
        store = ks.restore("ord", settings, "  " + TEST_MNEMONIC.replace(" ", "   ") + "\n")
        assert store.mnemonic == TEST_MNEMONIC

    def test_restore_rejects_invalid_mnemonic(self, settings):
        with pytest.raises(OperationError, match="invalid BIP39 mnemonic"):
            ks.restore("ord", settings, "abandon " * 12)
        assert not (settings.wallet_dir / "ord.json").exists()

    def test_invalid_name(self, settings):
        with pytest.raises(OperationError, match="invalid wallet name"):
            ks.create("../evil", settings)

    def test_load_round_trip(self, settings):
        ks.restore("alice", settings, TEST_MNEMONIC, passphrase="pw")
        store = ks.load("alice", settings)
        assert store.mnemonic == TEST_MNEMONIC
        assert store.passphrase == "pw"
        assert store.name == "alice"

    def test_load_missing(self, settings):
        with pytest.raises(ConstructionError, match="does not exist"):
            ks.load("ghost", settings)

    def test_load_corrupt(self, settings):
        settings.wallet_dir.mkdir(parents=True)
        (settings.wallet_dir / "ord.json").write_text("{not json")
        with pytest.raises(ConstructionError, match="cannot read"):
            ks.load("ord", settings)

    def test_mnemonic_not_in_repr(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        assert "abandon" not in repr(store)


class TestUpdates:
    def test_reserve_receive_indexes(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        assert ks.reserve_receive_indexes(store, 2) == [0, 1]
        assert ks.reserve_receive_indexes(store, 1) == [2]
        assert store.next_index == 3
        assert ks.load("ord", settings).next_index == 3

    def test_pending_add_and_remove(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        ks.add_pending(store, {"commit": "c1", "reveal": "r1", "hex": "00"})
        ks.add_pending(store, {"commit": "c2", "reveal": "r2", "hex": "01"})
        assert [p["reveal"] for p in ks.load("ord", settings).pending] == ["r1", "r2"]

        ks.remove_pending(store, "r1")
        assert [p["reveal"] for p in store.pending] == ["r2"]
        assert [p["reveal"] for p in ks.load("ord", settings).pending] == ["r2"]

    def test_restored_wallet_needs_scan(self, settings):
        assert ks.create("fresh", settings).scanned is True
        assert ks.restore("ord", settings, TEST_MNEMONIC).scanned is False
        assert ks.load("ord", settings).scanned is False

    def test_mark_scanned_keeps_higher_index(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        ks.reserve_receive_indexes(store, 5)
        ks.mark_scanned(store, 2)
        assert store.next_index == 5
        assert store.scanned is True
        reloaded = ks.load("ord", settings)
        assert reloaded.next_index == 5
        assert reloaded.scanned is True

    def test_legacy_file_counts_as_scanned(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        data = json.loads(store.path.read_text())
        del data["scanned"]
        store.path.write_text(json.dumps(data))
        assert ks.load("ord", settings).scanned is True
