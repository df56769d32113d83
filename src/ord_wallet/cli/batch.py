"""
ord_wallet.cli.batch — Inscribe several files in one commit/reveal

Batch files are TOML:

    mode = "separate-outputs"     # or "same-sat"
    postage = 10000               # optional, sats per reveal output

    [[inscriptions]]
    file = "a.png"                # relative to the batch file
    destination = "bc1p..."       # optional, defaults to a fresh address

In same-sat mode every inscription lands in one output, so only the first
entry may set a destination.

The commit is broadcast first, then the reveal. The signed reveal is
stored in the wallet as pending before anything is broadcast and only
dropped once the reveal is accepted, so `ord-wallet wallet resume` can
finish an interrupted batch.
"""

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import tomllib

from ord_wallet.config import log
from ord_wallet.errors import BroadcastError, OperationError
from ord_wallet.invocation import Batch
from ord_wallet.transactions import (
    TARGET_POSTAGE,
    InscriptionContent,
    build_commit_reveal,
    script_pubkey,
)
from ord_wallet.wallet import Wallet

MODES = ("separate-outputs", "same-sat")


@dataclass
class BatchEntry:
    file: Path
    destination: Optional[str] = None


@dataclass
class Batchfile:
    inscriptions: list
    mode: str = "separate-outputs"
    postage: int = TARGET_POSTAGE


@dataclass
class InscriptionResult:
    id: str
    location: str
    destination: str


@dataclass
class BatchOutput:
    commit: str
    reveal: str
    total_fees: int
    inscriptions: list = field(default_factory=list)
    pending: bool = False
    commit_hex: Optional[str] = None
    reveal_hex: Optional[str] = None


def load_batchfile(path: Path) -> Batchfile:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise OperationError(f"cannot read batch file {path}: {e}") from e

    mode = data.get("mode", "separate-outputs")
    if mode not in MODES:
        raise OperationError(f"unknown batch mode '{mode}'. Valid: {', '.join(MODES)}")

    entries = []
    for item in data.get("inscriptions", []):
        if "file" not in item:
            raise OperationError(f"{path}: every [[inscriptions]] entry needs a file")
        entries.append(BatchEntry(
            file=path.parent / item["file"],
            destination=item.get("destination"),
        ))
    if not entries:
        raise OperationError(f"{path}: no inscriptions")

    postage = data.get("postage", TARGET_POSTAGE)
    if not isinstance(postage, int) or isinstance(postage, bool):
        raise OperationError(f"{path}: postage must be an integer")

    if mode == "same-sat" and any(e.destination for e in entries[1:]):
        raise OperationError(
            f"{path}: same-sat inscriptions share one output; "
            "set destination on the first entry only"
        )

    return Batchfile(inscriptions=entries, mode=mode, postage=postage)


def _read_content(path: Path) -> tuple[str, bytes]:
    content_type, _ = mimetypes.guess_type(path.name)
    if content_type is None:
        raise OperationError(f"cannot determine content type of {path}")
    try:
        return content_type, path.read_bytes()
    except OSError as e:
        raise OperationError(f"cannot read {path}: {e}") from e


def inscribe_batch(wallet: Wallet, batchfile: Batchfile, fee_rate: float,
                   dry_run: bool) -> BatchOutput:
    """Build, sign and (unless dry_run) broadcast the commit and reveal."""
    wallet.require_signing("inscribe")
    same_sat = batchfile.mode == "same-sat"

    entries = batchfile.inscriptions
    if same_sat:
        destinations = [entries[0].destination or wallet.receive_addresses(1)[0]] * len(entries)
    else:
        destinations = [e.destination or wallet.receive_addresses(1)[0] for e in entries]

    contents = []
    for entry, destination in zip(entries, destinations):
        content_type, body = _read_content(entry.file)
        contents.append(InscriptionContent(
            content_type=content_type,
            body=body,
            destination=script_pubkey(destination),
        ))

    plan = build_commit_reveal(
        contents,
        same_sat=same_sat,
        postage=batchfile.postage,
        fee_rate=fee_rate,
        cardinals=wallet.cardinal_outputs(),
        key_for_address=wallet.signing_key,
        change_script=script_pubkey(wallet.change_address()),
    )
    commit_txid = plan.commit.get_txid()
    reveal_txid = plan.reveal.get_txid()

    inscriptions = [
        InscriptionResult(
            id=f"{reveal_txid}i{index}",
            location=f"{reveal_txid}:{0 if same_sat else index}:0",
            destination=destinations[index],
        )
        for index in range(len(contents))
    ]
    result = BatchOutput(
        commit=commit_txid,
        reveal=reveal_txid,
        total_fees=plan.total_fees,
        inscriptions=inscriptions,
    )

    if dry_run:
        result.commit_hex = plan.commit.serialize()
        result.reveal_hex = plan.reveal.serialize()
        return result

    reveal_hex = plan.reveal.serialize()
    wallet.add_pending_reveal({"commit": commit_txid, "reveal": reveal_txid, "hex": reveal_hex})
    try:
        wallet.broadcast(plan.commit.serialize())
    except BroadcastError:
        wallet.remove_pending_reveal(reveal_txid)
        raise

    try:
        wallet.broadcast(reveal_hex)
    except BroadcastError as e:
        log(f"Reveal {reveal_txid} not broadcast ({e}); run `ord-wallet wallet resume` later")
        result.pending = True
    else:
        wallet.remove_pending_reveal(reveal_txid)
    return result


def run(wallet: Wallet, params: Batch) -> BatchOutput:
    batchfile = load_batchfile(params.batch)
    return inscribe_batch(wallet, batchfile, params.fee_rate, params.dry_run)
