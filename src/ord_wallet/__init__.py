"""ord-wallet — ordinals and runes wallet backed by a remote ord server."""

__version__ = "0.1.0"
