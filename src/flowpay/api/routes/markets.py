"""Market data endpoints: market listing, order books, and quotes."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from starlette.concurrency import run_in_threadpool

from flowpay.api.errors import error_response
from flowpay.api.logging import build_request_log_extra
from flowpay.api.models import (
    MarketsEnvelope,
    OrderBookEnvelope,
    OrderBookPayload,
    PriceLevelPayload,
    QuoteEnvelope,
    QuotePayload,
)
from flowpay.api.validation import require_identifier
from flowpay.polymarket.exceptions import PolymarketError
from flowpay.polymarket.models import OrderBookSnapshot, PriceLevel, Quote

logger = logging.getLogger(__name__)

router = APIRouter()


def _context(request: Request):
    return request.app.state.context


def _serialize_level(level: PriceLevel) -> PriceLevelPayload:
    return PriceLevelPayload(price=level.price, size=level.size)


def _serialize_order_book(book: OrderBookSnapshot) -> OrderBookPayload:
    return OrderBookPayload(
        token_id=book.token_id,
        best_bid=book.best_bid,
        best_ask=book.best_ask,
        spread=book.spread,
        bids=[_serialize_level(level) for level in book.bids],
        asks=[_serialize_level(level) for level in book.asks],
    )


def _serialize_quote(quote: Quote) -> QuotePayload:
    return QuotePayload(
        token_id=quote.token_id,
        best_bid=quote.best_bid,
        best_ask=quote.best_ask,
        spread=quote.spread,
        spread_percentage=quote.spread_percentage,
    )


@router.get("/markets", response_model=MarketsEnvelope)
async def list_markets(
    request: Request,
    active: Optional[bool] = None,
    closed: Optional[bool] = None,
    archived: Optional[bool] = None,
    limit: Optional[int] = Query(None, ge=1),
):
    ctx = _context(request)
    effective_limit = limit or ctx.config.polymarket.default_markets_limit
    try:
        markets = await run_in_threadpool(
            ctx.polymarket.get_markets,
            active=active,
            closed=closed,
            archived=archived,
            limit=effective_limit,
        )
    except PolymarketError as exc:
        logger.exception(
            "Failed to fetch markets",
            extra=build_request_log_extra(request, event="markets_failed"),
        )
        return error_response(500, str(exc))

    return MarketsEnvelope(success=True, count=len(markets), markets=markets)


@router.get("/markets/{token_id}/orderbook", response_model=OrderBookEnvelope)
async def get_order_book(token_id: str, request: Request):
    token_id = require_identifier(token_id, "Token ID")
    ctx = _context(request)
    try:
        book = await run_in_threadpool(ctx.polymarket.get_order_book, token_id)
    except PolymarketError as exc:
        logger.exception(
            "Failed to fetch order book",
            extra=build_request_log_extra(request, event="order_book_failed", token_id=token_id),
        )
        return error_response(500, str(exc))

    return OrderBookEnvelope(success=True, data=_serialize_order_book(book))


@router.get("/markets/{token_id}/quote", response_model=QuoteEnvelope)
async def get_quote(token_id: str, request: Request):
    token_id = require_identifier(token_id, "Token ID")
    ctx = _context(request)
    try:
        quote = await run_in_threadpool(ctx.polymarket.get_quote, token_id)
    except PolymarketError as exc:
        logger.exception(
            "Failed to fetch quote",
            extra=build_request_log_extra(request, event="quote_failed", token_id=token_id),
        )
        return error_response(500, str(exc))

    return QuoteEnvelope(success=True, quote=_serialize_quote(quote))
