"""
ord_wallet.config — Project settings, wallet storage paths, verbose logging

Settings are read from ord-wallet.toml in the project root, then
overridden by environment variables:

    ORD_WALLET_ROOT     project root (default: $PWD, then the cwd)
    ORD_SERVER_URL      default ord server URL
    ORD_CHAIN           mainnet, testnet, signet or regtest
    ORD_BROADCAST_URL   esplora API used to broadcast transactions
"""

import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

import tomllib

from ord_wallet.errors import ConfigurationError

CONFIG_FILENAME = "ord-wallet.toml"
WALLET_DIR = ".wallet"

DEFAULT_WALLET_NAME = "ord"
DEFAULT_SERVER_URL = "http://127.0.0.1:80"

VALID_CHAINS = ("mainnet", "testnet", "signet", "regtest")

BROADCAST_URLS = {
    "mainnet": "https://mempool.space/api",
    "testnet": "https://mempool.space/testnet/api",
    "signet": "https://mempool.space/signet/api",
    "regtest": None,
}

# ---------------------------------------------------------------------------
# Verbose logging
# ---------------------------------------------------------------------------

_verbose = False


def set_verbose(verbose: bool) -> None:
    global _verbose
    _verbose = verbose


def is_verbose() -> bool:
    return _verbose


def log(message: str = "") -> None:
    """Print a diagnostic line to stderr when verbose output is enabled.

    stdout carries the JSON result of the command, so logs never go there.
    """
    if _verbose:
        print(message, file=sys.stderr)


# ---------------------------------------------------------------------------
# Project root and config file
# ---------------------------------------------------------------------------

def _project_root() -> str:
    """Return the project root: ORD_WALLET_ROOT, then PWD, then the cwd."""
    return os.environ.get("ORD_WALLET_ROOT") or os.environ.get("PWD") or os.getcwd()


def find_config() -> Optional[Path]:
    """Return the path to ord-wallet.toml, or None if there is none."""
    path = Path(_project_root()) / CONFIG_FILENAME
    return path if path.exists() else None


_cached_config = None
_cached_config_path = None


def load_config(reload: bool = False) -> dict:
    """Load and cache the raw config file contents.

    Returns a dict that always has a "settings" table, even when no
    config file exists.
    """
    global _cached_config, _cached_config_path

    path = find_config()
    if not reload and _cached_config is not None and _cached_config_path == path:
        return _cached_config

    config = {"settings": {}}
    if path is not None:
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"invalid {CONFIG_FILENAME}: {e}") from e
        config.update(data)
        config.setdefault("settings", {})

    _cached_config = config
    _cached_config_path = path
    return config


def create_default_config(server_url: str = DEFAULT_SERVER_URL, chain: str = "mainnet") -> str:
    """Return the text of a fresh ord-wallet.toml."""
    return (
        "[settings]\n"
        "# ord server used by wallet commands (overridden by --server-url)\n"
        f'server_url = "{server_url}"\n'
        "\n"
        "# mainnet, testnet, signet or regtest\n"
        f'chain = "{chain}"\n'
        "\n"
        "# esplora API used to broadcast transactions\n"
        '# broadcast_url = "https://mempool.space/api"\n'
    )


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Settings:
    """Read-only process-wide settings for one invocation."""
    chain: str = "mainnet"
    server_url: Optional[str] = None
    broadcast_url: Optional[str] = None
    root: str = "."

    @property
    def wallet_dir(self) -> Path:
        return Path(self.root) / WALLET_DIR

    def with_chain(self, chain: str) -> "Settings":
        """Return a copy bound to another chain, re-deriving the broadcast default."""
        _check_chain(chain)
        broadcast_url = self.broadcast_url
        if broadcast_url == BROADCAST_URLS.get(self.chain):
            broadcast_url = BROADCAST_URLS[chain]
        return replace(self, chain=chain, broadcast_url=broadcast_url)


def _check_chain(chain: str) -> None:
    if chain not in VALID_CHAINS:
        raise ConfigurationError(
            f"Unknown chain '{chain}'. Valid: {', '.join(VALID_CHAINS)}"
        )


def load_settings(reload: bool = False) -> Settings:
    """Build Settings from ord-wallet.toml and environment overrides."""
    settings = load_config(reload=reload)["settings"]

    chain = os.environ.get("ORD_CHAIN") or settings.get("chain", "mainnet")
    _check_chain(chain)

    server_url = os.environ.get("ORD_SERVER_URL") or settings.get("server_url")
    broadcast_url = (
        os.environ.get("ORD_BROADCAST_URL")
        or settings.get("broadcast_url")
        or BROADCAST_URLS[chain]
    )

    return Settings(
        chain=chain,
        server_url=server_url or None,
        broadcast_url=broadcast_url,
        root=_project_root(),
    )
