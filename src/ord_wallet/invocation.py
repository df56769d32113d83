"""
ord_wallet.invocation — Parsed wallet requests

An Invocation is one fully-parsed `ord-wallet wallet ...` command line:
the shared wallet flags plus exactly one Operation. Each operation is its
own frozen dataclass; the ones that take parameters carry them as fields.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Union

from ord_wallet.config import DEFAULT_WALLET_NAME

SATS_PER_BTC = 100_000_000

INSCRIPTION_ID_RE = re.compile(r"^[0-9a-f]{64}i\d+$")
AMOUNT_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(btc|sat|sats)$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Outgoing (what `send` sends)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Amount:
    sats: int


@dataclass(frozen=True)
class InscriptionId:
    id: str

    @property
    def txid(self) -> str:
        return self.id.split("i", 1)[0]


Outgoing = Union[Amount, InscriptionId]


def parse_outgoing(text: str) -> Outgoing:
    """Parse `<n> sat`, `<n> sats`, `<n> btc` or an inscription id.

    Raises ValueError for anything else.
    """
    text = text.strip()
    if INSCRIPTION_ID_RE.match(text):
        return InscriptionId(text)

    match = AMOUNT_RE.match(text)
    if not match:
        raise ValueError(
            f"'{text}' is neither an amount (e.g. '1000 sat', '0.1 btc') "
            "nor an inscription id"
        )

    value, unit = match.group(1), match.group(2).lower()
    try:
        number = Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"invalid amount '{value}'") from e

    if unit == "btc":
        number *= SATS_PER_BTC
    if number != number.to_integral_value():
        raise ValueError(f"amount '{text}' is not a whole number of sats")
    sats = int(number)
    if sats <= 0:
        raise ValueError("amount must be greater than zero")
    return Amount(sats)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Balance:
    pass


@dataclass(frozen=True)
class Batch:
    batch: Path
    fee_rate: float
    dry_run: bool = False


@dataclass(frozen=True)
class Create:
    passphrase: str = field(default="", repr=False)


@dataclass(frozen=True)
class Dump:
    pass


@dataclass(frozen=True)
class Inscribe:
    file: Path
    fee_rate: float
    destination: Optional[str] = None
    postage: Optional[int] = None
    dry_run: bool = False


@dataclass(frozen=True)
class Inscriptions:
    pass


@dataclass(frozen=True)
class Mint:
    rune: str
    fee_rate: float
    destination: Optional[str] = None
    postage: Optional[int] = None
    dry_run: bool = False


@dataclass(frozen=True)
class Receive:
    number: int = 1


@dataclass(frozen=True)
class Restore:
    mnemonic: str = field(repr=False)
    passphrase: str = field(default="", repr=False)


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class Sats:
    tsv: Optional[Path] = None


@dataclass(frozen=True)
class Send:
    address: str
    outgoing: Outgoing
    fee_rate: float
    dry_run: bool = False


@dataclass(frozen=True)
class Transactions:
    limit: Optional[int] = None


@dataclass(frozen=True)
class Outputs:
    pass


@dataclass(frozen=True)
class Cardinals:
    pass


Operation = Union[
    Balance, Batch, Create, Dump, Inscribe, Inscriptions, Mint, Receive,
    Restore, Resume, Sats, Send, Transactions, Outputs, Cardinals,
]

OPERATION_TYPES = (
    Balance, Batch, Create, Dump, Inscribe, Inscriptions, Mint, Receive,
    Restore, Resume, Sats, Send, Transactions, Outputs, Cardinals,
)

# Operations that build or rebuild wallet storage instead of using a wallet.
CONSTRUCTION_OPERATIONS = (Create, Restore)


@dataclass(frozen=True)
class Invocation:
    """One parsed wallet command: shared flags plus the chosen operation."""
    operation: Operation
    name: str = DEFAULT_WALLET_NAME
    no_sync: bool = False
    server_url: Optional[str] = None
    address: Optional[str] = None
