"""
ord_wallet.cli.sats — Sat ranges held by the wallet

Without --tsv, lists the sat ranges of every output. With --tsv FILE,
looks for specific sats instead; each non-empty line of FILE is

    <identifier>\t<sat number>

and lines starting with '#' are ignored. Requires an ord server with a
sat index.
"""

from dataclasses import dataclass, field
from pathlib import Path

from ord_wallet.errors import OperationError
from ord_wallet.invocation import Sats
from ord_wallet.wallet import Wallet, WalletOutput


@dataclass
class OutputRanges:
    output: str
    ranges: list = field(default_factory=list)


@dataclass
class FoundSat:
    found: str
    sat: int
    location: str


def parse_tsv(path: Path) -> list[tuple[str, int]]:
    try:
        text = path.read_text()
    except OSError as e:
        raise OperationError(f"cannot read {path}: {e}") from e

    wanted = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split("\t")
        if len(parts) != 2:
            raise OperationError(f"{path}:{lineno}: expected '<identifier>\\t<sat>'")
        identifier, sat = parts[0].strip(), parts[1].strip()
        if not sat.isdigit():
            raise OperationError(f"{path}:{lineno}: invalid sat number '{sat}'")
        wanted.append((identifier, int(sat)))
    return wanted


def locate(sat: int, outputs: list[WalletOutput]):
    """Return `outpoint:offset` of sat within outputs, or None."""
    for output in outputs:
        offset = 0
        for start, end in output.sat_ranges or []:
            if start <= sat < end:
                return f"{output.outpoint}:{offset + sat - start}"
            offset += end - start
    return None


def run(wallet: Wallet, params: Sats):
    if not wallet.status().get("sat_index"):
        raise OperationError("sats requires an ord server started with --index-sats")

    outputs = wallet.outputs()
    if params.tsv is None:
        return [OutputRanges(output=o.outpoint, ranges=o.sat_ranges or []) for o in outputs]

    found = []
    for identifier, sat in parse_tsv(params.tsv):
        location = locate(sat, outputs)
        if location is not None:
            found.append(FoundSat(found=identifier, sat=sat, location=location))
    return found
