# src/flowpay/polymarket/exceptions.py

class PolymarketError(Exception):
    """Base exception for errors surfaced by the Polymarket facade."""


class InitializationError(PolymarketError):
    """Raised when API credentials cannot be derived from the private key."""


class RemoteFetchError(PolymarketError):
    """Raised when the CLOB or market metadata service cannot be reached or errors out."""
