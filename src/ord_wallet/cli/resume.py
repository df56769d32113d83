"""ord_wallet.cli.resume — Re-broadcast reveals left pending by inscribe/batch."""

from dataclasses import dataclass

from ord_wallet.errors import BroadcastError
from ord_wallet.wallet import Wallet


@dataclass
class ResumeEntry:
    commit: str
    reveal: str
    status: str


def run(wallet: Wallet) -> list[ResumeEntry]:
    results = []
    for record in wallet.pending_reveals():
        try:
            wallet.broadcast(record["hex"])
        except BroadcastError as e:
            status = f"failed: {e}"
        else:
            wallet.remove_pending_reveal(record["reveal"])
            status = "broadcast"
        results.append(ResumeEntry(commit=record.get("commit", ""), reveal=record["reveal"], status=status))
    return results
