"""ord_wallet.cli.cardinals — List unspent outputs safe to spend as plain sats."""

from dataclasses import dataclass

from ord_wallet.wallet import Wallet


@dataclass
class CardinalOutput:
    output: str
    amount: int


def run(wallet: Wallet) -> list[CardinalOutput]:
    return [CardinalOutput(output=o.outpoint, amount=o.value) for o in wallet.cardinal_outputs()]
