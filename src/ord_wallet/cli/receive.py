"""ord_wallet.cli.receive — Hand out fresh receive addresses."""

from dataclasses import dataclass, field

from ord_wallet.invocation import Receive
from ord_wallet.wallet import Wallet


@dataclass
class ReceiveOutput:
    addresses: list = field(default_factory=list)


def run(wallet: Wallet, params: Receive) -> ReceiveOutput:
    return ReceiveOutput(addresses=wallet.receive_addresses(params.number))
