"""ord_wallet.cli.restore — Restore a wallet from its BIP39 mnemonic."""

from dataclasses import dataclass

from ord_wallet import keystore
from ord_wallet.config import Settings
from ord_wallet.invocation import Restore


@dataclass
class RestoreOutput:
    name: str
    chain: str


def run(name: str, settings: Settings, params: Restore) -> RestoreOutput:
    store = keystore.restore(name, settings, params.mnemonic, params.passphrase)
    return RestoreOutput(name=store.name, chain=store.chain)
