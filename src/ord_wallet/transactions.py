"""
ord_wallet.transactions — Taproot transaction building with bitcoin-utils

Everything the signing operations need to turn wallet outputs into
signed transactions:

  - vsize / fee estimation for P2TR key-path spends
  - largest-first cardinal coin selection with dust-aware change
  - address -> scriptPubKey
  - runestone scripts for rune mints
  - inscription envelopes and the commit/reveal pair that carries them

Inputs are any objects with `txid`, `vout`, `value` and `address`
attributes (see ord_wallet.wallet.WalletOutput).
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Optional

from bitcoinutils.keys import (
    P2pkhAddress,
    P2shAddress,
    P2trAddress,
    P2wpkhAddress,
    P2wshAddress,
    PrivateKey,
)
from bitcoinutils.script import Script
from bitcoinutils.transactions import Transaction, TxInput, TxOutput, TxWitnessInput
from bitcoinutils.utils import ControlBlock

from ord_wallet.errors import OperationError

TARGET_POSTAGE = 10_000
DUST_LIMIT = 330
MAX_PUSH_SIZE = 520

TX_OVERHEAD_VBYTES = 10.5
P2TR_KEY_SPEND_INPUT_VBYTES = 57.5
P2TR_SCRIPT_LEN = 34

# Runestone field tags
TAG_MINT = 20

# Inscription envelope field tags
TAG_CONTENT_TYPE = "01"
TAG_POINTER = "02"
ORD_PROTOCOL_ID = b"ord".hex()

SEGWIT_HRPS = ("bcrt", "bc", "tb")


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

def script_pubkey(address: str) -> Script:
    """Return the scriptPubKey paying to address on the configured chain."""
    lowered = address.lower()
    try:
        for hrp in SEGWIT_HRPS:
            if lowered.startswith(hrp + "1"):
                program = lowered[len(hrp) + 1:]
                if program.startswith("p"):
                    return P2trAddress(address=address).to_script_pub_key()
                if program.startswith("q") and len(program) == 39:
                    return P2wpkhAddress(address=address).to_script_pub_key()
                if program.startswith("q"):
                    return P2wshAddress(address=address).to_script_pub_key()
                break
        else:
            if address[:1] in ("1", "m", "n"):
                return P2pkhAddress(address=address).to_script_pub_key()
            if address[:1] in ("3", "2"):
                return P2shAddress(address=address).to_script_pub_key()
    except (ValueError, TypeError) as e:
        raise OperationError(f"invalid address '{address}': {e}") from e
    raise OperationError(f"unsupported address '{address}'")


def _script_len(script: Script) -> int:
    return len(script.to_bytes())


# ---------------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------------

def output_vbytes(script_len: int) -> int:
    """amount (8) + script length prefix + script."""
    return 8 + (1 if script_len < 0xFD else 3) + script_len


def estimate_vsize(input_count: int, output_script_lens: list[int]) -> int:
    """Estimate the vsize of a transaction spending P2TR outputs by key path."""
    size = TX_OVERHEAD_VBYTES + input_count * P2TR_KEY_SPEND_INPUT_VBYTES
    size += sum(output_vbytes(n) for n in output_script_lens)
    return math.ceil(size)


def fee_for(vsize: int, fee_rate: float) -> int:
    return math.ceil(vsize * fee_rate)


# ---------------------------------------------------------------------------
# Coin selection
# ---------------------------------------------------------------------------

@dataclass
class FundedTransaction:
    """Inputs and outputs for a transaction, before signing."""
    inputs: list
    outputs: list  # [(Script, value)]
    fee: int
    change: int = 0


def fund(required_inputs: list, cardinals: list, payments: list,
         fee_rate: float, change_script: Script) -> FundedTransaction:
    """Add cardinal inputs until payments plus fee are covered.

    Args:
        required_inputs: Inputs that must be spent, in order (e.g. an
            inscription's output). They are always the first inputs.
        cardinals: Spendable outputs carrying no inscriptions or runes.
        payments: List of (Script, value) outputs, kept in order.
        fee_rate: sat/vB.
        change_script: Where change goes. Change below the dust limit is
            left to the miner instead.

    Raises:
        OperationError if the cardinals cannot cover the payments and fee.
    """
    if fee_rate <= 0:
        raise OperationError("fee rate must be greater than zero")

    required_ids = {(u.txid, u.vout) for u in required_inputs}
    available = sorted(
        (u for u in cardinals if (u.txid, u.vout) not in required_ids),
        key=lambda u: u.value,
        reverse=True,
    )
    inputs = list(required_inputs)
    pay_total = sum(value for _, value in payments)
    out_lens = [_script_len(script) for script, _ in payments]
    change_len = _script_len(change_script)

    while True:
        in_total = sum(u.value for u in inputs)
        fee_without_change = fee_for(estimate_vsize(len(inputs), out_lens), fee_rate)
        if inputs and in_total >= pay_total + fee_without_change:
            fee_with_change = fee_for(estimate_vsize(len(inputs), out_lens + [change_len]), fee_rate)
            change = in_total - pay_total - fee_with_change
            if change >= DUST_LIMIT:
                return FundedTransaction(
                    inputs=inputs,
                    outputs=list(payments) + [(change_script, change)],
                    fee=fee_with_change,
                    change=change,
                )
            return FundedTransaction(
                inputs=inputs,
                outputs=list(payments),
                fee=in_total - pay_total,
            )
        if not available:
            raise OperationError(
                f"insufficient cardinal funds: need {pay_total + fee_without_change:,} sats, "
                f"have {in_total:,} sats"
            )
        inputs.append(available.pop(0))


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------

def sign_key_path(funded: FundedTransaction,
                  key_for_address: Callable[[str], PrivateKey]) -> Transaction:
    """Build and sign a transaction whose inputs are all P2TR key-path spends."""
    tx = Transaction(
        [TxInput(u.txid, u.vout) for u in funded.inputs],
        [TxOutput(value, script) for script, value in funded.outputs],
        has_segwit=True,
    )
    scripts = [script_pubkey(u.address) for u in funded.inputs]
    amounts = [u.value for u in funded.inputs]
    for index, utxo in enumerate(funded.inputs):
        key = key_for_address(utxo.address)
        sig = key.sign_taproot_input(tx, index, scripts, amounts)
        tx.witnesses.append(TxWitnessInput([sig]))
    return tx


# ---------------------------------------------------------------------------
# Runestones
# ---------------------------------------------------------------------------

def encode_leb128(n: int) -> bytes:
    """Unsigned LEB128, the varint used inside runestones."""
    if n < 0:
        raise ValueError("LEB128 values must be non-negative")
    out = bytearray()
    while True:
        byte = n & 0x7F
        n >>= 7
        if n:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def parse_rune_id(rune_id: str) -> tuple[int, int]:
    """Split a rune id `BLOCK:TX` into integers."""
    try:
        block, tx = rune_id.split(":")
        return int(block), int(tx)
    except ValueError as e:
        raise OperationError(f"invalid rune id '{rune_id}'") from e


def mint_runestone(rune_id: str) -> Script:
    """Return the OP_RETURN script of a runestone minting rune_id."""
    block, tx = parse_rune_id(rune_id)
    payload = encode_leb128(TAG_MINT) + encode_leb128(block)
    payload += encode_leb128(TAG_MINT) + encode_leb128(tx)
    return Script(["OP_RETURN", "OP_13", payload.hex()])


# ---------------------------------------------------------------------------
# Inscriptions
# ---------------------------------------------------------------------------

@dataclass
class InscriptionContent:
    content_type: str
    body: bytes
    destination: Script = None
    pointer: Optional[int] = None


def encode_pointer(pointer: int) -> bytes:
    """Little-endian with trailing zero bytes trimmed."""
    raw = pointer.to_bytes(8, "little").rstrip(b"\x00")
    return raw or b"\x00"


def envelope_chunks(content: InscriptionContent) -> list[str]:
    """Script items of one `OP_FALSE OP_IF "ord" ... OP_ENDIF` envelope."""
    chunks = ["OP_0", "OP_IF", ORD_PROTOCOL_ID,
              TAG_CONTENT_TYPE, content.content_type.encode("utf-8").hex()]
    if content.pointer:
        chunks += [TAG_POINTER, encode_pointer(content.pointer).hex()]
    chunks.append("OP_0")
    for start in range(0, len(content.body), MAX_PUSH_SIZE):
        chunks.append(content.body[start:start + MAX_PUSH_SIZE].hex())
    chunks.append("OP_ENDIF")
    return chunks


def reveal_script(x_only_pubkey_hex: str, contents: list[InscriptionContent]) -> Script:
    items = [x_only_pubkey_hex, "OP_CHECKSIG"]
    for content in contents:
        items += envelope_chunks(content)
    return Script(items)


def estimate_reveal_vsize(script_len: int, output_script_lens: list[int]) -> int:
    """vsize of a one-input script-path spend of a single-leaf tree."""
    base = 10 + 41 + sum(output_vbytes(n) for n in output_script_lens)
    script_prefix = 1 if script_len < 0xFD else (3 if script_len <= 0xFFFF else 5)
    witness = 2 + 1 + (1 + 64) + (script_prefix + script_len) + (1 + 33)
    return math.ceil((base * 4 + witness) / 4)


@dataclass
class CommitReveal:
    commit: Transaction
    reveal: Transaction
    commit_fee: int
    reveal_fee: int
    reveal_key: PrivateKey = field(repr=False)
    postage: list = field(default_factory=list)

    @property
    def total_fees(self) -> int:
        return self.commit_fee + self.reveal_fee


def build_commit_reveal(contents: list[InscriptionContent], same_sat: bool,
                        postage: int, fee_rate: float, cardinals: list,
                        key_for_address: Callable[[str], PrivateKey],
                        change_script: Script) -> CommitReveal:
    """Build a funded, signed commit and the reveal that inscribes contents.

    In separate-outputs mode each inscription gets its own postage output
    in the reveal and a pointer to that output's first sat. In same-sat
    mode every inscription lands on the first sat of a single output.
    """
    if not contents:
        raise OperationError("nothing to inscribe")
    if postage < DUST_LIMIT:
        raise OperationError(f"postage must be at least {DUST_LIMIT} sats")

    if same_sat:
        reveal_outputs = [(contents[0].destination, postage)]
    else:
        reveal_outputs = [(c.destination, postage) for c in contents]
        for index, content in enumerate(contents):
            content.pointer = index * postage

    reveal_key = PrivateKey()
    reveal_pub = reveal_key.get_public_key()
    leaf = reveal_script(reveal_pub.to_x_only_hex(), contents)
    commit_address = reveal_pub.get_taproot_address([leaf])
    commit_spk = commit_address.to_script_pub_key()

    reveal_vsize = estimate_reveal_vsize(
        _script_len(leaf), [_script_len(script) for script, _ in reveal_outputs]
    )
    reveal_fee = fee_for(reveal_vsize, fee_rate)
    commit_value = sum(value for _, value in reveal_outputs) + reveal_fee

    funded = fund([], cardinals, [(commit_spk, commit_value)], fee_rate, change_script)
    commit = sign_key_path(funded, key_for_address)

    reveal = Transaction(
        [TxInput(commit.get_txid(), 0)],
        [TxOutput(value, script) for script, value in reveal_outputs],
        has_segwit=True,
    )
    sig = reveal_key.sign_taproot_input(
        reveal, 0, [commit_spk], [commit_value],
        script_path=True, tapleaf_script=leaf, tweak=False,
    )
    control_block = ControlBlock(reveal_pub, [leaf], 0, is_odd=commit_address.is_odd())
    reveal.witnesses.append(TxWitnessInput([sig, leaf.to_hex(), control_block.to_hex()]))

    return CommitReveal(
        commit=commit,
        reveal=reveal,
        commit_fee=funded.fee,
        reveal_fee=reveal_fee,
        reveal_key=reveal_key,
        postage=[value for _, value in reveal_outputs],
    )
