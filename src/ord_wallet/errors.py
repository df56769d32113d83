"""
ord_wallet.errors — Error taxonomy for wallet invocations

Malformed command-line input never gets here: typer rejects it with a
usage error before the router runs. Everything that can go wrong after
parsing is a WalletError and propagates unchanged to the CLI boundary.
"""


class WalletError(Exception):
    """Base class for errors raised while running a wallet command."""


class ConfigurationError(WalletError):
    """Raised when settings or the server URL are invalid."""


class ConstructionError(WalletError):
    """Raised when the wallet context cannot be built."""


class OperationError(WalletError):
    """Raised when a dispatched wallet operation fails."""


class ServerError(OperationError):
    """Raised when a request to the ord server fails."""


class BroadcastError(OperationError):
    """Raised when a signed transaction is rejected by the broadcast endpoint."""
