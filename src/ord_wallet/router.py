"""
ord_wallet.router — Resolve, build and dispatch one wallet invocation

Flow:
  1. Create / Restore work on wallet storage directly and return at once.
  2. Resolve the ord server URL: --server-url, then settings, then
     http://127.0.0.1:80.
  3. Pick the construction mode: AddressBound when --address was given,
     NamedWallet otherwise, and build the wallet.
  4. Dispatch the operation to its handler and return its result as is.
"""

from dataclasses import dataclass
from typing import Optional, Union

from ord_wallet.cli import (
    balance,
    batch,
    cardinals,
    create,
    dump,
    inscribe,
    inscriptions,
    mint,
    outputs,
    receive,
    restore,
    resume,
    sats,
    send,
    transactions,
)
from ord_wallet.config import DEFAULT_SERVER_URL, Settings, log
from ord_wallet.errors import ConfigurationError
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
)
from ord_wallet.server import validate_url
from ord_wallet.wallet import Wallet


# ---------------------------------------------------------------------------
# Construction mode
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NamedWallet:
    name: str


@dataclass(frozen=True)
class AddressBound:
    address: str


WalletMode = Union[NamedWallet, AddressBound]


def select_wallet_mode(invocation: Invocation) -> WalletMode:
    """AddressBound whenever an address was given, NamedWallet otherwise."""
    if invocation.address is not None:
        return AddressBound(invocation.address)
    return NamedWallet(invocation.name)


def build_wallet(mode: WalletMode, no_sync: bool, settings: Settings, url: str) -> Wallet:
    if isinstance(mode, AddressBound):
        return Wallet.build_address_bound(mode.address, no_sync, settings, url)
    return Wallet.build(mode.name, no_sync, settings, url)


# ---------------------------------------------------------------------------
# Server URL
# ---------------------------------------------------------------------------

def resolve_server_url(server_url: Optional[str], settings: Settings) -> str:
    """Apply --server-url > settings > local default, then validate the winner."""
    url = server_url or settings.server_url or DEFAULT_SERVER_URL
    try:
        return validate_url(url)
    except ValueError as e:
        raise ConfigurationError(f"invalid server URL: {e}") from e


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

HANDLERS = {
    Balance: lambda wallet, op: balance.run(wallet),
    Batch: batch.run,
    Dump: lambda wallet, op: dump.run(wallet),
    Inscribe: inscribe.run,
    Inscriptions: lambda wallet, op: inscriptions.run(wallet),
    Mint: mint.run,
    Receive: receive.run,
    Resume: lambda wallet, op: resume.run(wallet),
    Sats: sats.run,
    Send: send.run,
    Transactions: transactions.run,
    Outputs: lambda wallet, op: outputs.run(wallet),
    Cardinals: lambda wallet, op: cardinals.run(wallet),
}


def dispatch(operation, wallet: Wallet):
    handler = HANDLERS.get(type(operation))
    if handler is None:
        raise RuntimeError(f"{type(operation).__name__} cannot run against a loaded wallet")
    return handler(wallet, operation)


def run(invocation: Invocation, settings: Settings):
    """Run one wallet invocation and return the handler's result."""
    log(f"Running wallet command: {invocation}")
    operation = invocation.operation

    if isinstance(operation, Create):
        return create.run(invocation.name, settings, operation)
    if isinstance(operation, Restore):
        return restore.run(invocation.name, settings, operation)

    url = resolve_server_url(invocation.server_url, settings)
    mode = select_wallet_mode(invocation)
    log(f"Using ord server {url} ({type(mode).__name__})")
    wallet = build_wallet(mode, invocation.no_sync, settings, url)

    return dispatch(operation, wallet)
