"""
ord_wallet.wallet — The wallet context handed to every operation

A Wallet is built in exactly one of two ways:

  Wallet.build(name, ...)                 keys loaded from .wallet/<name>.json,
                                          can sign and hand out addresses
  Wallet.build_address_bound(address, ...) read-only view of one address,
                                          no keys

Both talk to the same ord server. Unless no_sync is set, construction
checks that the server is reachable and indexes the configured chain.
"""

from dataclasses import dataclass, field
from typing import Optional

from bitcoinutils.keys import PrivateKey

from ord_wallet import keystore as ks
from ord_wallet import server
from ord_wallet.concurrent import run_per_item
from ord_wallet.config import Settings, log
from ord_wallet.errors import BroadcastError, ConstructionError, OperationError, ServerError

# Consecutive unused receive addresses that end a scan of a restored wallet
GAP_LIMIT = 20


@dataclass
class WalletOutput:
    """One unspent output owned by the wallet, as indexed by ord."""
    outpoint: str
    value: int
    address: Optional[str] = None
    inscriptions: list = field(default_factory=list)
    runes: dict = field(default_factory=dict)
    sat_ranges: Optional[list] = None

    @property
    def txid(self) -> str:
        return self.outpoint.rsplit(":", 1)[0]

    @property
    def vout(self) -> int:
        return int(self.outpoint.rsplit(":", 1)[1])

    @property
    def is_cardinal(self) -> bool:
        return not self.inscriptions and not self.runes


def _parse_runes(raw) -> dict:
    """Normalize ord's rune balances to {spaced_rune: amount}.

    Newer servers return a mapping of rune -> {"amount": ...}; older ones a
    list of [rune, amount-or-pile] pairs.
    """
    if not raw:
        return {}
    items = raw.items() if isinstance(raw, dict) else raw
    balances = {}
    for name, pile in items:
        amount = pile.get("amount", 0) if isinstance(pile, dict) else pile
        balances[name] = balances.get(name, 0) + int(amount)
    return balances


def parse_output(outpoint: str, data: dict) -> WalletOutput:
    return WalletOutput(
        outpoint=outpoint,
        value=int(data.get("value", 0)),
        address=data.get("address"),
        inscriptions=list(data.get("inscriptions") or []),
        runes=_parse_runes(data.get("runes")),
        sat_ranges=data.get("sat_ranges"),
    )


class Wallet:
    def __init__(self, settings: Settings, client: server.OrdClient, no_sync: bool,
                 keystore: ks.Keystore = None, address: str = None, status: dict = None):
        self.settings = settings
        self.client = client
        self.no_sync = no_sync
        self.keystore = keystore
        self.bound_address = address
        self._status = status
        self._outputs = None
        self._key_paths = None

    # -----------------------------------------------------------------------
    # Construction
    # -----------------------------------------------------------------------

    @classmethod
    def build(cls, name: str, no_sync: bool, settings: Settings, url: str) -> "Wallet":
        """Load the named wallet's keys and connect it to the ord server at url."""
        keystore = ks.load(name, settings)
        if keystore.chain != settings.chain:
            raise ConstructionError(
                f"wallet `{name}` was created for {keystore.chain}, not {settings.chain}"
            )
        ks.use_chain(settings.chain)
        client = server.OrdClient(url)
        status = None if no_sync else _sync(client, settings)
        log(f"Loaded wallet `{name}` ({keystore.chain}, {keystore.next_index} receive addresses)")
        return cls(settings, client, no_sync, keystore=keystore, status=status)

    @classmethod
    def build_address_bound(cls, address: str, no_sync: bool, settings: Settings,
                            url: str) -> "Wallet":
        """Build a read-only wallet that watches a single address."""
        address = address.strip()
        if not address:
            raise ConstructionError("address must not be empty")
        ks.use_chain(settings.chain)
        client = server.OrdClient(url)
        status = None if no_sync else _sync(client, settings)
        log(f"Watching address {address} (read-only)")
        return cls(settings, client, no_sync, address=address, status=status)

    # -----------------------------------------------------------------------
    # Identity
    # -----------------------------------------------------------------------

    @property
    def name(self) -> Optional[str]:
        return self.keystore.name if self.keystore else None

    @property
    def can_sign(self) -> bool:
        return self.keystore is not None

    @property
    def server_url(self) -> str:
        return self.client.url

    def require_signing(self, action: str) -> ks.Keystore:
        if self.keystore is None:
            raise OperationError(
                f"cannot {action}: wallet is bound to address {self.bound_address} and has no keys"
            )
        return self.keystore

    def status(self) -> dict:
        """Return ord's /status, fetching it if construction skipped the sync."""
        if self._status is None:
            self._status = self.client.status()
        return self._status

    # -----------------------------------------------------------------------
    # Addresses and keys
    # -----------------------------------------------------------------------

    def _paths(self) -> dict:
        """Map every wallet address to its (change, index) derivation."""
        if self._key_paths is None:
            paths = {}
            for index in range(self.keystore.next_index):
                paths[self.keystore.address(False, index)] = (False, index)
            paths[self.keystore.address(True, 0)] = (True, 0)
            self._key_paths = paths
        return self._key_paths

    def addresses(self) -> list[str]:
        if self.keystore is None:
            return [self.bound_address]
        return list(self._paths())

    def change_address(self) -> str:
        keystore = self.require_signing("create change")
        return keystore.address(True, 0)

    def receive_addresses(self, count: int) -> list[str]:
        """Hand out `count` fresh receive addresses (or the bound address)."""
        if self.keystore is None:
            return [self.bound_address]
        if not self.no_sync:
            self.scan()
        indexes = ks.reserve_receive_indexes(self.keystore, count)
        self._key_paths = None
        return [self.keystore.address(False, index) for index in indexes]

    def signing_key(self, address: str) -> PrivateKey:
        keystore = self.require_signing("sign")
        path = self._paths().get(address)
        if path is None:
            raise OperationError(f"address {address} does not belong to wallet `{keystore.name}`")
        change, index = path
        return keystore.private_key(change, index)

    def scan(self) -> None:
        """Find receive addresses a restored wallet used before it was restored.

        Asks the ord server about receive addresses in windows until
        GAP_LIMIT consecutive ones hold no outputs, then moves next_index
        past the last used one. Runs once per restored wallet.
        """
        keystore = self.keystore
        if keystore is None or keystore.scanned:
            return

        last_used = keystore.next_index - 1
        index = keystore.next_index
        while index <= last_used + GAP_LIMIT:
            window = list(range(index, last_used + GAP_LIMIT + 1))
            addresses = [keystore.address(False, i) for i in window]
            for i, info in zip(window, run_per_item(self.client.address, addresses)):
                if info.get("outputs"):
                    last_used = i
            index = window[-1] + 1

        ks.mark_scanned(keystore, last_used + 1)
        self._key_paths = None
        log(f"Scanned wallet `{keystore.name}`: {keystore.next_index} receive addresses in use")

    # -----------------------------------------------------------------------
    # Outputs
    # -----------------------------------------------------------------------

    def outputs(self) -> list[WalletOutput]:
        """Return the wallet's unspent outputs, in address then server order."""
        if self._outputs is None:
            self.scan()
            outpoints = []
            for info in run_per_item(self.client.address, self.addresses()):
                for outpoint in info.get("outputs", []):
                    if outpoint not in outpoints:
                        outpoints.append(outpoint)

            details = run_per_item(self.client.output, outpoints)
            self._outputs = [
                parse_output(outpoint, data)
                for outpoint, data in zip(outpoints, details)
                if not data.get("spent", False)
            ]
            log(f"Found {len(self._outputs)} unspent outputs")
        return self._outputs

    def cardinal_outputs(self) -> list[WalletOutput]:
        return [o for o in self.outputs() if o.is_cardinal]

    def output_for_inscription(self, inscription_id: str) -> WalletOutput:
        for output in self.outputs():
            if inscription_id in output.inscriptions:
                return output
        raise OperationError(f"inscription {inscription_id} not in wallet")

    # -----------------------------------------------------------------------
    # Broadcasting and pending reveals
    # -----------------------------------------------------------------------

    def broadcast(self, tx_hex: str) -> str:
        if not self.settings.broadcast_url:
            raise BroadcastError(
                f"no broadcast_url configured for {self.settings.chain}; "
                "set it in ord-wallet.toml or ORD_BROADCAST_URL"
            )
        txid = server.broadcast(self.settings.broadcast_url, tx_hex)
        log(f"Broadcast {txid}")
        return txid

    def pending_reveals(self) -> list[dict]:
        keystore = self.require_signing("resume reveals")
        return list(keystore.pending)

    def add_pending_reveal(self, record: dict) -> None:
        ks.add_pending(self.require_signing("store reveals"), record)

    def remove_pending_reveal(self, reveal_txid: str) -> None:
        ks.remove_pending(self.require_signing("resume reveals"), reveal_txid)


def _sync(client: server.OrdClient, settings: Settings) -> dict:
    """Fetch ord's /status and check it serves the configured chain."""
    try:
        status = client.status()
    except ServerError as e:
        raise ConstructionError(f"cannot reach ord server at {client.url}: {e}") from e

    chain = status.get("chain")
    if chain and chain != settings.chain:
        raise ConstructionError(
            f"ord server at {client.url} indexes {chain}, but wallet is configured for {settings.chain}"
        )
    log(f"ord server at {client.url} is at height {status.get('height')}")
    return status
