"""
ord_wallet.cli.wallet — `ord-wallet wallet ...` command group

Shared flags (before the subcommand):
    --name WALLET        wallet to use (default: ord)
    --no-sync            skip the ord server status check (alias --nosync)
    --server-url URL     ord server, overrides ord-wallet.toml
    --address ADDRESS    read-only view of one address instead of a wallet

Every subcommand builds an Invocation, hands it to ord_wallet.router and
prints the handler's result as JSON on stdout.
"""

import json
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Optional

import typer

from ord_wallet.config import DEFAULT_WALLET_NAME, load_settings
from ord_wallet.errors import WalletError
from ord_wallet.invocation import (
    Balance,
    Batch,
    Cardinals,
    Create,
    Dump,
    Inscribe,
    Inscriptions,
    Invocation,
    Mint,
    Outputs,
    Receive,
    Restore,
    Resume,
    Sats,
    Send,
    Transactions,
    parse_outgoing,
)
from ord_wallet.server import validate_url

wallet_app = typer.Typer(no_args_is_help=True)


def _validate_server_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return validate_url(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def _parse_outgoing(value: str):
    try:
        return parse_outgoing(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def _to_json(result):
    if is_dataclass(result):
        return asdict(result)
    if isinstance(result, list):
        return [_to_json(item) for item in result]
    return result


def _run(ctx: typer.Context, operation) -> None:
    """Run one operation through the router and print its result."""
    from ord_wallet import router
    from ord_wallet.cli import state

    invocation = Invocation(operation=operation, **ctx.obj)
    try:
        settings = load_settings()
        if state.chain is not None:
            settings = settings.with_chain(state.chain)
        result = router.run(invocation, settings)
    except WalletError as e:
        print(f"error: {e}", file=sys.stderr)
        raise typer.Exit(1)

    print(json.dumps(_to_json(result), indent=2, default=str))


@wallet_app.callback()
def wallet_callback(
    ctx: typer.Context,
    name: str = typer.Option(DEFAULT_WALLET_NAME, "--name", help="Wallet name"),
    no_sync: bool = typer.Option(
        False, "--no-sync", "--nosync", help="Do not check the ord server before running"
    ),
    server_url: Optional[str] = typer.Option(
        None, "--server-url", callback=_validate_server_url,
        help="ord server URL (default: ord-wallet.toml, then http://127.0.0.1:80)",
    ),
    address: Optional[str] = typer.Option(
        None, "--address", help="Read-only view of this address instead of a wallet"
    ),
):
    """Wallet operations against an ord server."""
    ctx.obj = {
        "name": name,
        "no_sync": no_sync,
        "server_url": server_url,
        "address": address,
    }


@wallet_app.command()
def balance(ctx: typer.Context):
    """Show cardinal, ordinal and runic balances."""
    _run(ctx, Balance())


@wallet_app.command()
def batch(
    ctx: typer.Context,
    batch_file: Path = typer.Option(
        ..., "--batch", exists=True, dir_okay=False, help="TOML batch file"
    ),
    fee_rate: float = typer.Option(..., "--fee-rate", help="Fee rate in sat/vB"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Sign but do not broadcast"),
):
    """Inscribe several files in one commit/reveal."""
    _run(ctx, Batch(batch=batch_file, fee_rate=fee_rate, dry_run=dry_run))


@wallet_app.command()
def create(
    ctx: typer.Context,
    passphrase: str = typer.Option("", "--passphrase", help="Optional BIP39 passphrase"),
):
    """Create a new wallet and print its mnemonic."""
    _run(ctx, Create(passphrase=passphrase))


@wallet_app.command()
def dump(ctx: typer.Context):
    """Print the wallet's mnemonic (keep it secret)."""
    _run(ctx, Dump())


@wallet_app.command()
def inscribe(
    ctx: typer.Context,
    file: Path = typer.Option(
        ..., "--file", exists=True, dir_okay=False, help="File to inscribe"
    ),
    fee_rate: float = typer.Option(..., "--fee-rate", help="Fee rate in sat/vB"),
    destination: Optional[str] = typer.Option(
        None, "--destination", help="Address to receive the inscription"
    ),
    postage: Optional[int] = typer.Option(
        None, "--postage", min=1, help="Sats in the inscription output (default 10000)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Sign but do not broadcast"),
):
    """Inscribe a file."""
    _run(ctx, Inscribe(file=file, fee_rate=fee_rate, destination=destination,
                       postage=postage, dry_run=dry_run))


@wallet_app.command()
def inscriptions(ctx: typer.Context):
    """List inscriptions held by the wallet."""
    _run(ctx, Inscriptions())


@wallet_app.command()
def mint(
    ctx: typer.Context,
    rune: str = typer.Option(..., "--rune", help="Rune to mint"),
    fee_rate: float = typer.Option(..., "--fee-rate", help="Fee rate in sat/vB"),
    destination: Optional[str] = typer.Option(
        None, "--destination", help="Address to receive the minted runes"
    ),
    postage: Optional[int] = typer.Option(
        None, "--postage", min=1, help="Sats in the rune output (default 10000)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Sign but do not broadcast"),
):
    """Mint a rune."""
    _run(ctx, Mint(rune=rune, fee_rate=fee_rate, destination=destination,
                   postage=postage, dry_run=dry_run))


@wallet_app.command()
def receive(
    ctx: typer.Context,
    number: int = typer.Option(1, "--number", "-n", min=1, help="Addresses to generate"),
):
    """Generate receive addresses."""
    _run(ctx, Receive(number=number))


@wallet_app.command()
def restore(
    ctx: typer.Context,
    mnemonic: str = typer.Option(
        ..., "--mnemonic", prompt=True, hide_input=True, help="BIP39 mnemonic"
    ),
    passphrase: str = typer.Option("", "--passphrase", help="BIP39 passphrase"),
):
    """Restore a wallet from its mnemonic."""
    _run(ctx, Restore(mnemonic=mnemonic, passphrase=passphrase))


@wallet_app.command()
def resume(ctx: typer.Context):
    """Broadcast reveals left pending by inscribe or batch."""
    _run(ctx, Resume())


@wallet_app.command()
def sats(
    ctx: typer.Context,
    tsv: Optional[Path] = typer.Option(
        None, "--tsv", exists=True, dir_okay=False,
        help="Find the sats listed in this file (<id>\\t<sat> per line)",
    ),
):
    """List sat ranges, or find specific sats."""
    _run(ctx, Sats(tsv=tsv))


@wallet_app.command()
def send(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Recipient address"),
    outgoing: str = typer.Argument(
        ..., callback=_parse_outgoing, help="Amount ('1000 sat', '0.1 btc') or inscription id"
    ),
    fee_rate: float = typer.Option(..., "--fee-rate", help="Fee rate in sat/vB"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Sign but do not broadcast"),
):
    """Send sats or an inscription."""
    _run(ctx, Send(address=address, outgoing=outgoing, fee_rate=fee_rate, dry_run=dry_run))


@wallet_app.command()
def transactions(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Show at most N"),
):
    """List transactions that funded the wallet."""
    _run(ctx, Transactions(limit=limit))


@wallet_app.command()
def outputs(ctx: typer.Context):
    """List the wallet's unspent outputs."""
    _run(ctx, Outputs())


@wallet_app.command()
def cardinals(ctx: typer.Context):
    """List outputs with no inscriptions or runes."""
    _run(ctx, Cardinals())
