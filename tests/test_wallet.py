"""Tests for ord_wallet.wallet — construction modes, outputs, keys, broadcasting."""

from unittest.mock import MagicMock, patch

import pytest

from ord_wallet import keystore as ks
from ord_wallet.config import Settings
from ord_wallet.errors import BroadcastError, ConstructionError, OperationError, ServerError
from ord_wallet.wallet import GAP_LIMIT, Wallet, WalletOutput, _parse_runes, parse_output

from conftest import FIRST_RECEIVE_ADDRESS, TEST_MNEMONIC

URL = "http://ord.local"
OC = "ord_wallet.server.OrdClient"


class TestParseOutput:
    def test_runes_mapping(self):
        assert _parse_runes({"UNCOMMON•GOODS": {"amount": 5, "divisibility": 0}}) == {
            "UNCOMMON•GOODS": 5
        }

    def test_runes_pairs(self):
        assert _parse_runes([["A", 2], ["A", 3], ["B", {"amount": 1}]]) == {"A": 5, "B": 1}

    def test_runes_empty(self):
        assert _parse_runes(None) == {}

    def test_parse_output(self):
        output = parse_output("ab" * 32 + ":1", {
            "value": 546,
            "address": "bc1pxyz",
            "inscriptions": ["ab" * 32 + "i0"],
            "sat_ranges": [[100, 646]],
        })
        assert output.txid == "ab" * 32
        assert output.vout == 1
        assert output.value == 546
        assert output.sat_ranges == [[100, 646]]
        assert not output.is_cardinal

    def test_cardinal(self):
        assert WalletOutput(outpoint="ab:0", value=1).is_cardinal


class TestBuild:
    @patch(OC)
    def test_named_no_sync(self, MockClient, settings):
        ks.restore("ord", settings, TEST_MNEMONIC)
        wallet = Wallet.build("ord", True, settings, URL)
        MockClient.assert_called_once_with(URL)
        MockClient.return_value.status.assert_not_called()
        assert wallet.can_sign
        assert wallet.name == "ord"

    @patch(OC)
    def test_named_sync_checks_chain(self, MockClient, settings):
        ks.restore("ord", settings, TEST_MNEMONIC)
        MockClient.return_value.status.return_value = {"chain": "mainnet", "height": 840000}
        wallet = Wallet.build("ord", False, settings, URL)
        assert wallet.status()["height"] == 840000

    @patch(OC)
    def test_server_on_other_chain(self, MockClient, settings):
        ks.restore("ord", settings, TEST_MNEMONIC)
        MockClient.return_value.status.return_value = {"chain": "signet"}
        with pytest.raises(ConstructionError, match="indexes signet"):
            Wallet.build("ord", False, settings, URL)

    @patch(OC)
    def test_unreachable_server(self, MockClient, settings):
        ks.restore("ord", settings, TEST_MNEMONIC)
        MockClient.return_value.url = URL
        MockClient.return_value.status.side_effect = ServerError("connection refused")
        with pytest.raises(ConstructionError, match="cannot reach"):
            Wallet.build("ord", False, settings, URL)

    @patch(OC)
    def test_keystore_from_other_chain(self, MockClient, settings):
        ks.restore("ord", settings, TEST_MNEMONIC)
        with pytest.raises(ConstructionError, match="created for mainnet"):
            Wallet.build("ord", True, settings.with_chain("signet"), URL)

    def test_unknown_wallet(self, settings):
        with pytest.raises(ConstructionError, match="does not exist"):
            Wallet.build("ghost", True, settings, URL)

    @patch(OC)
    def test_address_bound(self, MockClient, settings):
        wallet = Wallet.build_address_bound(" bc1pxyz ", True, settings, URL)
        assert not wallet.can_sign
        assert wallet.addresses() == ["bc1pxyz"]
        assert wallet.receive_addresses(3) == ["bc1pxyz"]

    def test_address_bound_empty(self, settings):
        with pytest.raises(ConstructionError, match="empty"):
            Wallet.build_address_bound("  ", True, settings, URL)


def _named_wallet(settings, client=None):
    store = ks.restore("ord", settings, TEST_MNEMONIC)
    ks.mark_scanned(store, 0)
    return Wallet(settings, client or MagicMock(), True, keystore=store)


class TestAddressesAndKeys:
    def test_receive_addresses_advance(self, settings):
        wallet = _named_wallet(settings)
        first = wallet.receive_addresses(1)
        assert first == [FIRST_RECEIVE_ADDRESS]
        second = wallet.receive_addresses(2)
        assert len(set(second)) == 2
        assert FIRST_RECEIVE_ADDRESS not in second
        assert ks.load("ord", settings).next_index == 3

    def test_addresses_include_change(self, settings):
        wallet = _named_wallet(settings)
        wallet.receive_addresses(2)
        addresses = wallet.addresses()
        assert len(addresses) == 3
        assert wallet.change_address() in addresses

    def test_signing_key(self, settings):
        wallet = _named_wallet(settings)
        wallet.receive_addresses(1)
        key = wallet.signing_key(FIRST_RECEIVE_ADDRESS)
        assert key.get_public_key().get_taproot_address().to_string() == FIRST_RECEIVE_ADDRESS

    def test_signing_key_foreign_address(self, settings):
        wallet = _named_wallet(settings)
        with pytest.raises(OperationError, match="does not belong"):
            wallet.signing_key("bc1pforeign")

    def test_address_bound_cannot_sign(self, settings):
        wallet = Wallet(settings, MagicMock(), True, address="bc1pxyz")
        with pytest.raises(OperationError, match="no keys"):
            wallet.signing_key("bc1pxyz")
        with pytest.raises(OperationError):
            wallet.change_address()


class TestScan:
    """A restored wallet finds the receive addresses it used before."""

    def _client(self, store, used):
        used_addresses = {store.address(False, i) for i in used}
        client = MagicMock()
        client.address.side_effect = lambda address: {
            "outputs": [f"{address}:0"] if address in used_addresses else []
        }
        client.output.return_value = {"value": 1000}
        return client

    @patch(OC)
    def test_build_then_outputs_finds_first_address(self, MockClient, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        MockClient.return_value = self._client(store, used=[0])
        MockClient.return_value.status.return_value = {"chain": "mainnet"}

        wallet = Wallet.build("ord", False, settings, URL)
        wallet.outputs()

        assert FIRST_RECEIVE_ADDRESS in wallet.addresses()
        assert ks.load("ord", settings).next_index == 1

    def test_gap_limit(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        client = self._client(store, used=[0, 3, 3 + GAP_LIMIT])
        wallet = Wallet(settings, client, False, keystore=store)

        wallet.scan()

        assert store.next_index == 4 + GAP_LIMIT
        scanned = [c.args[0] for c in client.address.call_args_list]
        assert len(scanned) == 4 + 2 * GAP_LIMIT
        assert store.address(False, 3 + 2 * GAP_LIMIT) in scanned
        assert store.address(False, 4 + 2 * GAP_LIMIT) not in scanned

    def test_used_addresses_persisted_once(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        client = self._client(store, used=[1])
        wallet = Wallet(settings, client, False, keystore=store)

        wallet.scan()
        calls = client.address.call_count
        wallet.scan()

        assert client.address.call_count == calls
        reloaded = ks.load("ord", settings)
        assert reloaded.scanned is True
        assert reloaded.next_index == 2

    def test_receive_skips_used_addresses(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        wallet = Wallet(settings, self._client(store, used=[0]), False, keystore=store)
        assert wallet.receive_addresses(1) == [store.address(False, 1)]

    def test_no_sync_receive_does_not_scan(self, settings):
        store = ks.restore("ord", settings, TEST_MNEMONIC)
        client = MagicMock()
        wallet = Wallet(settings, client, True, keystore=store)
        assert wallet.receive_addresses(1) == [FIRST_RECEIVE_ADDRESS]
        client.address.assert_not_called()

    def test_created_wallet_is_not_scanned(self, settings):
        store = ks.create("ord", settings)
        client = MagicMock()
        Wallet(settings, client, False, keystore=store).scan()
        client.address.assert_not_called()


class TestOutputs:
    def test_collects_unspent_outputs(self, settings):
        client = MagicMock()
        client.address.return_value = {"outputs": ["aa:0", "bb:1"]}
        client.output.side_effect = lambda op: {
            "aa:0": {"value": 1000, "address": "bc1pxyz"},
            "bb:1": {"value": 2000, "spent": True},
        }[op]
        wallet = Wallet(settings, client, True, address="bc1pxyz")

        outputs = wallet.outputs()
        assert [o.outpoint for o in outputs] == ["aa:0"]
        # cached
        wallet.outputs()
        assert client.address.call_count == 1

    def test_deduplicates_outpoints(self, settings):
        client = MagicMock()
        client.address.return_value = {"outputs": ["aa:0"]}
        client.output.return_value = {"value": 1000}
        wallet = _named_wallet(settings, client)
        wallet.receive_addresses(1)

        # receive address and change address both report aa:0
        assert [o.outpoint for o in wallet.outputs()] == ["aa:0"]
        assert client.output.call_count == 1

    def test_output_for_inscription(self, settings):
        wallet = Wallet(settings, MagicMock(), True, address="bc1pxyz")
        wallet._outputs = [
            WalletOutput(outpoint="aa:0", value=1000),
            WalletOutput(outpoint="bb:0", value=546, inscriptions=["bbi0"]),
        ]
        assert wallet.output_for_inscription("bbi0").outpoint == "bb:0"
        assert [o.outpoint for o in wallet.cardinal_outputs()] == ["aa:0"]
        with pytest.raises(OperationError, match="not in wallet"):
            wallet.output_for_inscription("cci0")


class TestBroadcast:
    @patch("ord_wallet.server.broadcast", return_value="ab" * 32)
    def test_broadcast(self, mock_broadcast, settings):
        wallet = Wallet(settings, MagicMock(), True, address="bc1pxyz")
        assert wallet.broadcast("0200") == "ab" * 32
        mock_broadcast.assert_called_once_with(settings.broadcast_url, "0200")

    def test_no_broadcast_url(self, wallet_project):
        settings = Settings(chain="regtest", root=str(wallet_project))
        wallet = Wallet(settings, MagicMock(), True, address="bcrt1pxyz")
        with pytest.raises(BroadcastError, match="no broadcast_url"):
            wallet.broadcast("0200")

    def test_pending_reveals(self, settings):
        wallet = _named_wallet(settings)
        wallet.add_pending_reveal({"commit": "c", "reveal": "r", "hex": "00"})
        assert wallet.pending_reveals() == [{"commit": "c", "reveal": "r", "hex": "00"}]
        wallet.remove_pending_reveal("r")
        assert wallet.pending_reveals() == []
