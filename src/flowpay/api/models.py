from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimals stay exact in Python and go out as plain JSON numbers.
JsonDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Base for payloads exposed with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorEnvelope(CamelModel):
    success: bool = False
    error: str


class PriceLevelPayload(CamelModel):
    price: JsonDecimal
    size: JsonDecimal


class OrderBookPayload(CamelModel):
    token_id: str
    best_bid: JsonDecimal
    best_ask: JsonDecimal
    spread: JsonDecimal
    bids: List[PriceLevelPayload]
    asks: List[PriceLevelPayload]


class QuotePayload(CamelModel):
    token_id: str
    best_bid: JsonDecimal
    best_ask: JsonDecimal
    spread: JsonDecimal
    spread_percentage: Optional[str] = Field(
        None, description="Spread as percent of best bid; null when there is no bid."
    )


class BalancePayload(CamelModel):
    balance_usd: JsonDecimal = Field(..., alias="balanceUSD")
    allowance_usd: JsonDecimal = Field(..., alias="allowanceUSD")


class TokenBalancePayload(BalancePayload):
    token_id: str


class OrderResultPayload(CamelModel):
    order_id: str
    success: bool
    message: str


class OrderRequestPayload(CamelModel):
    """Raw order body; field checks happen in :mod:`flowpay.api.validation`."""

    token_id: Optional[str] = None
    price: Optional[Decimal] = None
    size: Optional[Decimal] = None
    side: Optional[str] = None


class MarketsEnvelope(CamelModel):
    success: bool = True
    count: int
    markets: List[Dict[str, Any]]


class OrderBookEnvelope(CamelModel):
    success: bool = True
    data: OrderBookPayload


class QuoteEnvelope(CamelModel):
    success: bool = True
    quote: QuotePayload


class BalanceEnvelope(CamelModel):
    success: bool = True
    balance: BalancePayload


class TokenBalanceEnvelope(CamelModel):
    success: bool = True
    balance: TokenBalancePayload


class OrderEnvelope(CamelModel):
    success: bool
    order: OrderResultPayload


class OrdersEnvelope(CamelModel):
    success: bool = True
    count: int
    orders: List[Dict[str, Any]]


class CancelEnvelope(CamelModel):
    success: bool
    message: str


class CancelAllEnvelope(CamelModel):
    success: bool
    cancelled_count: int
    failed_order_ids: List[str] = Field(default_factory=list)


class TradesEnvelope(CamelModel):
    success: bool = True
    count: int
    trades: List[Dict[str, Any]]


class HealthPayload(CamelModel):
    status: str
    timestamp: str
    polymarket: str
