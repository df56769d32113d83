"""
ord_wallet.cli.transactions — Transactions that created the wallet's outputs

Listed in the order ord returns the outputs, each transaction once.
"""

from dataclasses import dataclass

from ord_wallet.invocation import Transactions
from ord_wallet.wallet import Wallet


@dataclass
class TransactionEntry:
    transaction: str
    outputs: int


def run(wallet: Wallet, params: Transactions) -> list[TransactionEntry]:
    counts: dict[str, int] = {}
    for output in wallet.outputs():
        counts[output.txid] = counts.get(output.txid, 0) + 1

    entries = [TransactionEntry(transaction=txid, outputs=n) for txid, n in counts.items()]
    if params.limit is not None:
        entries = entries[:params.limit]
    return entries
