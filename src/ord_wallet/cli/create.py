"""
ord_wallet.cli.create — Create a new wallet

Generates a BIP39 mnemonic and writes .wallet/<name>.json. The mnemonic
is printed once; it is the only backup of the wallet's keys.
"""

from dataclasses import dataclass
from typing import Optional

from ord_wallet import keystore
from ord_wallet.config import Settings
from ord_wallet.invocation import Create


@dataclass
class CreateOutput:
    mnemonic: str
    passphrase: Optional[str] = None


def run(name: str, settings: Settings, params: Create) -> CreateOutput:
    store = keystore.create(name, settings, params.passphrase)
    return CreateOutput(mnemonic=store.mnemonic, passphrase=params.passphrase or None)
