"""ord_wallet.cli.inscriptions — List inscriptions held by the wallet."""

from dataclasses import dataclass

from ord_wallet.concurrent import run_per_item
from ord_wallet.wallet import Wallet


@dataclass
class InscriptionEntry:
    inscription: str
    location: str
    explorer: str
    postage: int


def run(wallet: Wallet) -> list[InscriptionEntry]:
    held = [(inscription_id, output)
            for output in wallet.outputs()
            for inscription_id in output.inscriptions]

    details = run_per_item(lambda item: wallet.client.inscription(item[0]), held)

    return [
        InscriptionEntry(
            inscription=inscription_id,
            location=info.get("satpoint") or f"{output.outpoint}:0",
            explorer=f"{wallet.server_url}/inscription/{inscription_id}",
            postage=output.value,
        )
        for (inscription_id, output), info in zip(held, details)
    ]
