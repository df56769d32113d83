"""ord_wallet.cli.dump — Dump the wallet's mnemonic and derivation path."""

import sys
from dataclasses import dataclass, field
from typing import Optional

from ord_wallet.keystore import derivation_path
from ord_wallet.wallet import Wallet

DUMP_WARNING = """\
==========================================
= THIS STRING CONTAINS YOUR PRIVATE KEYS =
=        DO NOT SHARE WITH ANYONE        =
=========================================="""


@dataclass
class DumpOutput:
    mnemonic: str
    passphrase: Optional[str]
    derivation_path: str
    addresses: list = field(default_factory=list)


def run(wallet: Wallet) -> DumpOutput:
    store = wallet.require_signing("dump keys")
    print(DUMP_WARNING, file=sys.stderr)
    return DumpOutput(
        mnemonic=store.mnemonic,
        passphrase=store.passphrase or None,
        derivation_path=derivation_path(store.chain),
        addresses=wallet.addresses(),
    )
