"""Shared fixtures for ord_wallet tests."""

from unittest.mock import MagicMock

import pytest

import ord_wallet.config as cfg
from ord_wallet.config import Settings
from ord_wallet.wallet import WalletOutput

# BIP39 test mnemonic; its first BIP86 receive address is a published test vector.
TEST_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
FIRST_RECEIVE_ADDRESS = "bc1p5cyxnuxmeuwuvkwfem96lqzszd02n6xdcjrs20cac6yqjjwudpxqkedrcr"


@pytest.fixture
def wallet_project(tmp_path, monkeypatch):
    """Point the project root at an empty temp directory."""
    monkeypatch.setenv("ORD_WALLET_ROOT", str(tmp_path))
    for var in ("ORD_CHAIN", "ORD_SERVER_URL", "ORD_BROADCAST_URL"):
        monkeypatch.delenv(var, raising=False)

    # Clear config cache
    cfg._cached_config = None
    cfg._cached_config_path = None
    cfg.set_verbose(False)

    yield tmp_path

    cfg._cached_config = None
    cfg._cached_config_path = None
    cfg.set_verbose(False)


@pytest.fixture
def settings(wallet_project):
    """Mainnet settings rooted in the temp project."""
    return Settings(
        chain="mainnet",
        broadcast_url="https://mempool.example/api",
        root=str(wallet_project),
    )


@pytest.fixture
def mock_wallet():
    """A MagicMock standing in for a loaded Wallet."""
    wallet = MagicMock()
    wallet.server_url = "http://127.0.0.1:80"
    wallet.outputs.return_value = [
        WalletOutput(outpoint="aa" * 32 + ":0", value=50_000),
        WalletOutput(outpoint="bb" * 32 + ":1", value=10_000,
                     inscriptions=["bb" * 32 + "i0"]),
        WalletOutput(outpoint="cc" * 32 + ":2", value=546,
                     runes={"UNCOMMON•GOODS": 1500}),
        WalletOutput(outpoint="aa" * 32 + ":3", value=7_000),
    ]
    wallet.cardinal_outputs.side_effect = lambda: [
        o for o in wallet.outputs.return_value if o.is_cardinal
    ]
    return wallet


@pytest.fixture(autouse=True)
def bitcoin_mainnet():
    """bitcoin-utils keeps the active network globally; start every test on mainnet."""
    from ord_wallet.keystore import use_chain

    use_chain("mainnet")
    yield
    use_chain("mainnet")
