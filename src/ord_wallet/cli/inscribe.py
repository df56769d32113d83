"""ord_wallet.cli.inscribe — Inscribe a single file (a batch of one)."""

from ord_wallet.cli.batch import BatchEntry, Batchfile, BatchOutput, inscribe_batch
from ord_wallet.invocation import Inscribe
from ord_wallet.transactions import TARGET_POSTAGE
from ord_wallet.wallet import Wallet


def run(wallet: Wallet, params: Inscribe) -> BatchOutput:
    batchfile = Batchfile(
        inscriptions=[BatchEntry(file=params.file, destination=params.destination)],
        postage=params.postage or TARGET_POSTAGE,
    )
    return inscribe_batch(wallet, batchfile, params.fee_rate, params.dry_run)
