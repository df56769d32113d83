"""ord_wallet.cli.outputs — List every unspent output in the wallet."""

from dataclasses import dataclass, field

from ord_wallet.wallet import Wallet


@dataclass
class OutputEntry:
    output: str
    amount: int
    inscriptions: list = field(default_factory=list)
    runes: dict = field(default_factory=dict)


def run(wallet: Wallet) -> list[OutputEntry]:
    return [
        OutputEntry(
            output=o.outpoint,
            amount=o.value,
            inscriptions=list(o.inscriptions),
            runes=dict(o.runes),
        )
        for o in wallet.outputs()
    ]
