"""
ord_wallet.cli.send — Send sats or an inscription

OUTGOING is either an amount (`<n> sat`, `<n> btc`), paid from cardinal
outputs only, or an inscription id. An inscription is sent by spending
its whole output as the first input to the first output, so every sat
keeps its offset; fees come from cardinal outputs.
"""

from dataclasses import dataclass
from typing import Optional

from ord_wallet.config import log
from ord_wallet.errors import OperationError
from ord_wallet.invocation import Amount, Send
from ord_wallet.transactions import DUST_LIMIT, fund, script_pubkey, sign_key_path
from ord_wallet.wallet import Wallet


@dataclass
class SendOutput:
    transaction: str
    fee: int
    hex: Optional[str] = None


def run(wallet: Wallet, params: Send) -> SendOutput:
    wallet.require_signing("send")
    destination = script_pubkey(params.address)
    change = script_pubkey(wallet.change_address())
    cardinals = wallet.cardinal_outputs()

    if isinstance(params.outgoing, Amount):
        if params.outgoing.sats < DUST_LIMIT:
            raise OperationError(f"amount must be at least {DUST_LIMIT} sats")
        funded = fund([], cardinals, [(destination, params.outgoing.sats)],
                      params.fee_rate, change)
    else:
        output = wallet.output_for_inscription(params.outgoing.id)
        if output.runes:
            raise OperationError(
                f"output {output.outpoint} also holds runes; refusing to send it with the inscription"
            )
        funded = fund([output], cardinals, [(destination, output.value)],
                      params.fee_rate, change)

    tx = sign_key_path(funded, wallet.signing_key)
    txid = tx.get_txid()
    log(f"Signed {txid} ({len(funded.inputs)} inputs, fee {funded.fee} sats)")

    if params.dry_run:
        return SendOutput(transaction=txid, fee=funded.fee, hex=tx.serialize())

    return SendOutput(transaction=wallet.broadcast(tx.serialize()), fee=funded.fee)
