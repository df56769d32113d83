"""
ord_wallet.keystore — BIP39 wallet storage and BIP86 key derivation

Each named wallet is one JSON file, .wallet/<name>.json under the project
root, created with 0600 permissions. It holds the mnemonic, the optional
BIP39 passphrase, the chain it was created for, the next unused receive
index and any reveal transactions that still need broadcasting.

Keys follow BIP86 (single-key taproot):
    m/86'/<coin>'/0'/0/<i>   receive addresses
    m/86'/<coin>'/0'/1/0     change address
with coin 0 on mainnet and 1 on every test chain.
"""

import json
import os
import re
import stat
from dataclasses import dataclass, field
from pathlib import Path

from bip_utils import (
    Bip39MnemonicGenerator,
    Bip39MnemonicValidator,
    Bip39SeedGenerator,
    Bip39WordsNum,
    Bip44Changes,
    Bip86,
    Bip86Coins,
)
from bitcoinutils.keys import PrivateKey
from bitcoinutils.setup import setup
from filelock import FileLock

from ord_wallet.config import Settings, log
from ord_wallet.errors import ConstructionError, OperationError

WALLET_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

# bitcoin-utils has no separate signet parameters; signet shares testnet's
# address prefixes and WIF version.
_BITCOINUTILS_NETWORKS = {
    "mainnet": "mainnet",
    "testnet": "testnet",
    "signet": "testnet",
    "regtest": "regtest",
}


def use_chain(chain: str) -> None:
    """Point bitcoin-utils address encoding at the given chain."""
    setup(_BITCOINUTILS_NETWORKS[chain])


def derivation_path(chain: str) -> str:
    coin = 0 if chain == "mainnet" else 1
    return f"m/86'/{coin}'/0'"


@dataclass
class Keystore:
    name: str
    path: Path
    mnemonic: str = field(repr=False)
    passphrase: str = field(default="", repr=False)
    chain: str = "mainnet"
    next_index: int = 0
    pending: list = field(default_factory=list)
    # False until receive addresses used before a restore have been found
    scanned: bool = True

    _account = None

    def _account_ctx(self):
        if self._account is None:
            seed = Bip39SeedGenerator(self.mnemonic).Generate(self.passphrase)
            coin = Bip86Coins.BITCOIN if self.chain == "mainnet" else Bip86Coins.BITCOIN_TESTNET
            self._account = Bip86.FromSeed(seed, coin).Purpose().Coin().Account(0)
        return self._account

    def private_key(self, change: bool, index: int) -> PrivateKey:
        """Derive the key at m/86'/coin'/0'/<change>/<index>."""
        chain = Bip44Changes.CHAIN_INT if change else Bip44Changes.CHAIN_EXT
        raw = self._account_ctx().Change(chain).AddressIndex(index).PrivateKey().Raw().ToBytes()
        return PrivateKey(secret_exponent=int.from_bytes(raw, "big"))

    def address(self, change: bool, index: int) -> str:
        use_chain(self.chain)
        key = self.private_key(change, index)
        return key.get_public_key().get_taproot_address().to_string()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "mnemonic": self.mnemonic,
            "passphrase": self.passphrase,
            "chain": self.chain,
            "next_index": self.next_index,
            "pending": self.pending,
            "scanned": self.scanned,
        }


# ---------------------------------------------------------------------------
# Paths and file I/O
# ---------------------------------------------------------------------------

def keystore_path(name: str, settings: Settings) -> Path:
    return settings.wallet_dir / f"{name}.json"


def _lock(path: Path) -> FileLock:
    return FileLock(str(path) + ".lock", timeout=30)


def _check_name(name: str, error=OperationError) -> None:
    if not WALLET_NAME_RE.match(name):
        raise error(f"invalid wallet name '{name}'")


def _write(keystore: Keystore) -> None:
    path = keystore.path
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    # Atomic-create with 0600 from the start
    fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, stat.S_IRUSR | stat.S_IWUSR)
    with os.fdopen(fd, "w") as f:
        json.dump(keystore.to_dict(), f, indent=2)
    os.replace(tmp, path)


def _read(path: Path, name: str) -> Keystore:
    try:
        data = json.loads(path.read_text())
        mnemonic = data["mnemonic"]
    except (OSError, ValueError, KeyError) as e:
        raise ConstructionError(f"cannot read wallet `{name}`: {e}") from e
    return Keystore(
        name=name,
        path=path,
        mnemonic=mnemonic,
        passphrase=data.get("passphrase", ""),
        chain=data.get("chain", "mainnet"),
        next_index=data.get("next_index", 0),
        pending=data.get("pending", []),
        scanned=data.get("scanned", True),
    )


# ---------------------------------------------------------------------------
# Create / restore / load
# ---------------------------------------------------------------------------

def _initialize(name: str, settings: Settings, mnemonic: str, passphrase: str,
                scanned: bool) -> Keystore:
    path = keystore_path(name, settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    with _lock(path):
        if path.exists():
            raise OperationError(f"wallet `{name}` already exists at {path}")
        keystore = Keystore(
            name=name,
            path=path,
            mnemonic=mnemonic,
            passphrase=passphrase,
            chain=settings.chain,
            scanned=scanned,
        )
        _write(keystore)
    log(f"Wrote wallet `{name}` to {path}")
    return keystore


def create(name: str, settings: Settings, passphrase: str = "") -> Keystore:
    """Generate a fresh 12-word mnemonic and store it as wallet `name`."""
    _check_name(name)
    mnemonic = Bip39MnemonicGenerator().FromWordsNumber(Bip39WordsNum.WORDS_NUM_12).ToStr()
    return _initialize(name, settings, mnemonic, passphrase, scanned=True)


def restore(name: str, settings: Settings, mnemonic: str, passphrase: str = "") -> Keystore:
    """Store an existing mnemonic as wallet `name`."""
    _check_name(name)
    mnemonic = " ".join(mnemonic.split())
    if not Bip39MnemonicValidator().IsValid(mnemonic):
        raise OperationError("invalid BIP39 mnemonic")
    return _initialize(name, settings, mnemonic, passphrase, scanned=False)


def load(name: str, settings: Settings) -> Keystore:
    """Load wallet `name`; unknown wallets raise ConstructionError."""
    _check_name(name, ConstructionError)
    path = keystore_path(name, settings)
    if not path.exists():
        raise ConstructionError(
            f"wallet `{name}` does not exist. Create it with: ord-wallet wallet --name {name} create"
        )
    return _read(path, name)


# ---------------------------------------------------------------------------
# Updates (always re-read under the lock)
# ---------------------------------------------------------------------------

def reserve_receive_indexes(keystore: Keystore, count: int) -> list[int]:
    """Hand out `count` unused receive indexes and persist the new counter."""
    with _lock(keystore.path):
        current = _read(keystore.path, keystore.name)
        start = current.next_index
        current.next_index = start + count
        _write(current)
    keystore.next_index = start + count
    return list(range(start, start + count))


def add_pending(keystore: Keystore, record: dict) -> None:
    with _lock(keystore.path):
        current = _read(keystore.path, keystore.name)
        current.pending.append(record)
        _write(current)
    keystore.pending = current.pending


def remove_pending(keystore: Keystore, reveal_txid: str) -> None:
    with _lock(keystore.path):
        current = _read(keystore.path, keystore.name)
        current.pending = [p for p in current.pending if p.get("reveal") != reveal_txid]
        _write(current)
    keystore.pending = current.pending


def mark_scanned(keystore: Keystore, next_index: int) -> None:
    """Record the result of an address scan; next_index never moves backwards."""
    with _lock(keystore.path):
        current = _read(keystore.path, keystore.name)
        current.next_index = max(current.next_index, next_index)
        current.scanned = True
        _write(current)
    keystore.next_index = current.next_index
    keystore.scanned = True
