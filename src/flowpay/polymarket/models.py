# src/flowpay/polymarket/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
from typing import List, Optional, Sequence

USDC_SCALE = Decimal(1_000_000)
ZERO = Decimal(0)
_PERCENT_QUANTUM = Decimal("0.001")


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass
class PriceLevel:
    price: Decimal
    size: Decimal


@dataclass
class OrderBookSnapshot:
    token_id: str
    best_bid: Decimal
    best_ask: Decimal
    spread: Decimal
    bids: List[PriceLevel] = field(default_factory=list)
    asks: List[PriceLevel] = field(default_factory=list)

    @classmethod
    def from_levels(
        cls, token_id: str, bids: Sequence[PriceLevel], asks: Sequence[PriceLevel]
    ) -> "OrderBookSnapshot":
        """Build a snapshot, deriving the top of book from the raw levels.

        An empty side reports 0, so a one-sided book yields a negative or
        oversized spread; callers receive it as-is.
        """
        best_bid = max((level.price for level in bids), default=ZERO)
        best_ask = min((level.price for level in asks), default=ZERO)
        return cls(
            token_id=token_id,
            best_bid=best_bid,
            best_ask=best_ask,
            spread=best_ask - best_bid,
            bids=list(bids),
            asks=list(asks),
        )


@dataclass
class Quote:
    token_id: str
    best_bid: Decimal
    best_ask: Decimal
    spread: Decimal
    # Percent of best bid with three decimals; None when there is no bid.
    spread_percentage: Optional[str]

    @classmethod
    def from_order_book(cls, book: OrderBookSnapshot) -> "Quote":
        return cls(
            token_id=book.token_id,
            best_bid=book.best_bid,
            best_ask=book.best_ask,
            spread=book.spread,
            spread_percentage=spread_percentage(book.spread, book.best_bid),
        )


def spread_percentage(spread: Decimal, best_bid: Decimal) -> Optional[str]:
    """Return ``spread / best_bid * 100`` formatted to three decimals."""

    if best_bid == ZERO:
        return None
    with localcontext() as ctx:
        ratio = spread / best_bid * 100
        # Room for every integer digit plus the three decimals.
        ctx.prec = max(ctx.prec, ratio.adjusted() + 5)
        percentage = ratio.quantize(_PERCENT_QUANTUM, rounding=ROUND_HALF_UP)
    return str(percentage)


@dataclass
class Balance:
    balance_usd: Decimal
    allowance_usd: Decimal


@dataclass
class TokenBalance:
    token_id: str
    balance_usd: Decimal
    allowance_usd: Decimal


@dataclass
class OrderRequest:
    token_id: str
    price: Decimal
    size: Decimal
    side: OrderSide


@dataclass
class OrderResult:
    order_id: str
    success: bool
    message: str = ""


@dataclass
class CancelResult:
    success: bool
    message: str = ""


@dataclass
class CancelAllResult:
    success: bool
    cancelled_count: int = 0
    failed_order_ids: List[str] = field(default_factory=list)
