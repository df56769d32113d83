"""
ord_wallet.cli.mint — Mint a rune

Looks the rune up on the ord server, then pays for a transaction whose
first output is a runestone minting it and whose second output (the
default pointer target) carries the minted runes to the destination.
"""

from dataclasses import dataclass
from typing import Optional

from ord_wallet.config import log
from ord_wallet.errors import OperationError
from ord_wallet.invocation import Mint
from ord_wallet.transactions import (
    DUST_LIMIT,
    TARGET_POSTAGE,
    fund,
    mint_runestone,
    script_pubkey,
    sign_key_path,
)
from ord_wallet.wallet import Wallet


@dataclass
class MintOutput:
    rune: str
    rune_id: str
    destination: str
    transaction: str
    fee: int
    hex: Optional[str] = None


def run(wallet: Wallet, params: Mint) -> MintOutput:
    wallet.require_signing("mint")

    info = wallet.client.rune(params.rune)
    if not info.get("mintable"):
        raise OperationError(f"rune {params.rune} is not mintable")
    rune_id = info.get("id")
    if not rune_id:
        raise OperationError(f"ord server returned no id for rune {params.rune}")

    postage = params.postage or TARGET_POSTAGE
    if postage < DUST_LIMIT:
        raise OperationError(f"postage must be at least {DUST_LIMIT} sats")
    destination = params.destination or wallet.receive_addresses(1)[0]

    funded = fund(
        [],
        wallet.cardinal_outputs(),
        [(mint_runestone(rune_id), 0), (script_pubkey(destination), postage)],
        params.fee_rate,
        script_pubkey(wallet.change_address()),
    )
    tx = sign_key_path(funded, wallet.signing_key)
    txid = tx.get_txid()
    log(f"Minting {params.rune} ({rune_id}) in {txid}")

    result = MintOutput(
        rune=params.rune,
        rune_id=rune_id,
        destination=destination,
        transaction=txid,
        fee=funded.fee,
    )
    if params.dry_run:
        result.hex = tx.serialize()
    else:
        result.transaction = wallet.broadcast(tx.serialize())
    return result
