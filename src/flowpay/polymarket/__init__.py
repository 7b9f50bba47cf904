"""Polymarket facade, metadata client, and normalized result types."""

from .client import PolymarketClient
from .exceptions import InitializationError, PolymarketError, RemoteFetchError
from .markets import MarketMetadataClient
from .models import (
    Balance,
    CancelAllResult,
    CancelResult,
    OrderBookSnapshot,
    OrderRequest,
    OrderResult,
    OrderSide,
    PriceLevel,
    Quote,
    TokenBalance,
)

__all__ = [
    "PolymarketClient",
    "MarketMetadataClient",
    "PolymarketError",
    "InitializationError",
    "RemoteFetchError",
    "Balance",
    "TokenBalance",
    "PriceLevel",
    "OrderBookSnapshot",
    "Quote",
    "OrderSide",
    "OrderRequest",
    "OrderResult",
    "CancelResult",
    "CancelAllResult",
]
