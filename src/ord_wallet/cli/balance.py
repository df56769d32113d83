"""
ord_wallet.cli.balance — Wallet balance by output kind

  cardinal  sats in outputs with no inscriptions or runes
  ordinal   sats in outputs holding inscriptions
  runic     sats in outputs holding runes (and no inscriptions)
  runes     rune balances summed across outputs
"""

from dataclasses import dataclass, field

from ord_wallet.wallet import Wallet


@dataclass
class BalanceOutput:
    cardinal: int = 0
    ordinal: int = 0
    runic: int = 0
    runes: dict = field(default_factory=dict)
    total: int = 0


def run(wallet: Wallet) -> BalanceOutput:
    balance = BalanceOutput()
    for output in wallet.outputs():
        if output.inscriptions:
            balance.ordinal += output.value
        elif output.runes:
            balance.runic += output.value
        else:
            balance.cardinal += output.value
        for rune, amount in output.runes.items():
            balance.runes[rune] = balance.runes.get(rune, 0) + amount

    balance.total = balance.cardinal + balance.ordinal + balance.runic
    return balance
