"""
ord-wallet CLI — Ordinals and runes wallet backed by an ord server
"""

from pathlib import Path
from typing import Optional

import typer

from ord_wallet.config import (
    CONFIG_FILENAME,
    DEFAULT_SERVER_URL,
    VALID_CHAINS,
    _project_root,
    create_default_config,
    set_verbose,
)

# Click's \b marker prevents paragraph rewrapping in --help
HELP_TEXT = """\
Ordinals and runes wallet backed by an ord server

\b
Setup:
  ord-wallet init
  ord-wallet wallet create
\b
Everyday use:
  ord-wallet wallet receive                    # fresh taproot address
  ord-wallet wallet balance
  ord-wallet wallet inscribe --file a.png --fee-rate 5
  ord-wallet wallet send <address> "1000 sat" --fee-rate 5
\b
Read-only view of any address:
  ord-wallet wallet --address <address> outputs
\b
All results are printed as JSON. Use --verbose for progress on stderr.
"""

app = typer.Typer(
    name="ord-wallet",
    help=HELP_TEXT,
    no_args_is_help=True,
)


# Global state
class State:
    verbose: bool = False
    chain: Optional[str] = None  # None = use ord-wallet.toml / ORD_CHAIN


state = State()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show verbose output on stderr"
    ),
    chain: Optional[str] = typer.Option(
        None, "--chain", help=f"Bitcoin chain: {', '.join(VALID_CHAINS)}"
    ),
):
    """Global options for all commands."""
    if chain is not None and chain not in VALID_CHAINS:
        raise typer.BadParameter(
            f"'{chain}'. Valid: {', '.join(VALID_CHAINS)}", param_hint="--chain"
        )
    state.verbose = verbose
    state.chain = chain
    set_verbose(verbose)


@app.command()
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing config"),
    server_url: str = typer.Option(
        DEFAULT_SERVER_URL, "--server-url", help="ord server used by wallet commands"
    ),
):
    """Write a default ord-wallet.toml in the project root."""
    config_path = Path(_project_root()) / CONFIG_FILENAME
    if config_path.exists() and not force:
        print(f"{CONFIG_FILENAME} already exists.")
        print("Use --force to overwrite.")
        raise typer.Exit(1)

    config_path.write_text(create_default_config(server_url=server_url, chain=state.chain or "mainnet"))
    print(f"Created {config_path}")
    print()
    print("Next step:")
    print("  ord-wallet wallet create")


# ---------------------------------------------------------------------------
# Wallet subcommand group
# ---------------------------------------------------------------------------

from ord_wallet.cli.wallet import wallet_app  # noqa: E402

app.add_typer(wallet_app, name="wallet", help="Wallet operations against an ord server")


def main():
    """Entry point for the CLI."""
    app()
