"""
ord_wallet.server — Client for the ord server JSON API

The ord server answers every explorer route with JSON when asked for
`Accept: application/json`. Only the routes the wallet needs are wrapped
here; any transport or HTTP failure surfaces as ServerError.
"""

from urllib.parse import urlsplit

import requests

from ord_wallet.config import log
from ord_wallet.errors import BroadcastError, ServerError

REQUEST_TIMEOUT = 15


def validate_url(url: str) -> str:
    """Return url unchanged if it has a scheme and a host, else raise ValueError."""
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise ValueError(f"invalid URL '{url}': {e}") from e
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"invalid URL '{url}': expected <scheme>://<host>[:<port>]")
    return url


class OrdClient:
    """Thin JSON client for one ord server.

    Each request is a plain requests.get, so one client can be shared by the
    worker threads in ord_wallet.concurrent.
    """

    headers = {"Accept": "application/json"}

    def __init__(self, url: str):
        self.url = url.rstrip("/")

    def get(self, path: str):
        """GET a route and return the decoded JSON body."""
        url = f"{self.url}{path}"
        log(f">>> GET {url}")
        try:
            resp = requests.get(url, headers=self.headers, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
            return resp.json()
        except requests.JSONDecodeError as e:
            raise ServerError(f"ord server returned invalid JSON for {path}") from e
        except requests.HTTPError as e:
            raise ServerError(f"ord server returned {e.response.status_code} for {path}") from e
        except requests.RequestException as e:
            raise ServerError(f"ord server request to {url} failed: {e}") from e

    def status(self) -> dict:
        return self.get("/status")

    def address(self, address: str) -> dict:
        return self.get(f"/address/{address}")

    def output(self, outpoint: str) -> dict:
        return self.get(f"/output/{outpoint}")

    def inscription(self, inscription_id: str) -> dict:
        return self.get(f"/inscription/{inscription_id}")

    def rune(self, name: str) -> dict:
        return self.get(f"/rune/{name}")


def broadcast(broadcast_url: str, tx_hex: str) -> str:
    """POST a raw transaction to an esplora API and return its txid."""
    url = f"{broadcast_url.rstrip('/')}/tx"
    log(f">>> POST {url}")
    try:
        resp = requests.post(url, data=tx_hex, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        raise BroadcastError(f"broadcast to {url} failed: {e}") from e
    if resp.status_code != 200:
        raise BroadcastError(f"transaction rejected: {resp.text.strip()}")
    return resp.text.strip()
