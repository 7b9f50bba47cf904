"""Trading endpoints: balances, orders, cancellations, and trade history."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from starlette.concurrency import run_in_threadpool

from flowpay.api.errors import error_response
from flowpay.api.logging import build_request_log_extra
from flowpay.api.models import (
    BalanceEnvelope,
    BalancePayload,
    CancelAllEnvelope,
    CancelEnvelope,
    OrderEnvelope,
    OrderRequestPayload,
    OrderResultPayload,
    OrdersEnvelope,
    TokenBalanceEnvelope,
    TokenBalancePayload,
    TradesEnvelope,
)
from flowpay.api.validation import require_identifier, validate_order_request
from flowpay.polymarket.exceptions import PolymarketError

logger = logging.getLogger(__name__)

router = APIRouter()


def _context(request: Request):
    return request.app.state.context


def _optional_token(token_id: Optional[str]) -> Optional[str]:
    if token_id is None:
        return None
    return token_id.strip() or None


@router.get("/balance", response_model=BalanceEnvelope)
async def get_balance(request: Request):
    ctx = _context(request)
    try:
        balance = await run_in_threadpool(ctx.polymarket.get_balance)
    except PolymarketError as exc:
        logger.exception(
            "Failed to fetch balance",
            extra=build_request_log_extra(request, event="balance_failed"),
        )
        return error_response(500, str(exc))

    return BalanceEnvelope(
        success=True,
        balance=BalancePayload(
            balance_usd=balance.balance_usd, allowance_usd=balance.allowance_usd
        ),
    )


@router.get("/balance/{token_id}", response_model=TokenBalanceEnvelope)
async def get_token_balance(token_id: str, request: Request):
    token_id = require_identifier(token_id, "Token ID")
    ctx = _context(request)
    try:
        balance = await run_in_threadpool(ctx.polymarket.get_token_balance, token_id)
    except PolymarketError as exc:
        logger.exception(
            "Failed to fetch token balance",
            extra=build_request_log_extra(request, event="token_balance_failed", token_id=token_id),
        )
        return error_response(500, str(exc))

    return TokenBalanceEnvelope(
        success=True,
        balance=TokenBalancePayload(
            token_id=balance.token_id,
            balance_usd=balance.balance_usd,
            allowance_usd=balance.allowance_usd,
        ),
    )


@router.post("/orders", response_model=OrderEnvelope)
async def create_order(payload: OrderRequestPayload, request: Request):
    order = validate_order_request(payload)
    ctx = _context(request)
    try:
        result = await run_in_threadpool(ctx.polymarket.create_order, order)
    except PolymarketError as exc:
        logger.exception(
            "Failed to create order",
            extra=build_request_log_extra(
                request, event="create_order_failed", token_id=order.token_id
            ),
        )
        return error_response(500, str(exc))

    logger.info(
        "Order request handled",
        extra=build_request_log_extra(
            request,
            event="create_order_handled",
            token_id=order.token_id,
            order_id=result.order_id or None,
            side=order.side.value,
            accepted=result.success,
        ),
    )
    return OrderEnvelope(
        success=result.success,
        order=OrderResultPayload(
            order_id=result.order_id, success=result.success, message=result.message
        ),
    )


@router.get("/orders", response_model=OrdersEnvelope)
async def list_orders(
    request: Request, token_id: Optional[str] = Query(None, alias="tokenId")
):
    token_id = _optional_token(token_id)
    ctx = _context(request)
    try:
        orders = await run_in_threadpool(ctx.polymarket.get_orders, token_id)
    except PolymarketError as exc:
        logger.exception(
            "Failed to fetch orders",
            extra=build_request_log_extra(request, event="orders_failed", token_id=token_id),
        )
        return error_response(500, str(exc))

    return OrdersEnvelope(success=True, count=len(orders), orders=orders)


@router.delete("/orders/{order_id}", response_model=CancelEnvelope)
async def cancel_order(order_id: str, request: Request):
    order_id = require_identifier(order_id, "Order ID")
    ctx = _context(request)
    try:
        result = await run_in_threadpool(ctx.polymarket.cancel_order, order_id)
    except PolymarketError as exc:
        logger.exception(
            "Failed to cancel order",
            extra=build_request_log_extra(request, event="cancel_order_failed", order_id=order_id),
        )
        return error_response(500, str(exc))

    return CancelEnvelope(success=result.success, message=result.message)


@router.delete("/orders", response_model=CancelAllEnvelope)
async def cancel_all_orders(
    request: Request, token_id: Optional[str] = Query(None, alias="tokenId")
):
    token_id = _optional_token(token_id)
    ctx = _context(request)
    try:
        result = await run_in_threadpool(ctx.polymarket.cancel_all_orders, token_id)
    except PolymarketError as exc:
        logger.exception(
            "Failed to cancel orders",
            extra=build_request_log_extra(request, event="cancel_all_failed", token_id=token_id),
        )
        return error_response(500, str(exc))

    return CancelAllEnvelope(
        success=result.success,
        cancelled_count=result.cancelled_count,
        failed_order_ids=result.failed_order_ids,
    )


@router.get("/trades", response_model=TradesEnvelope)
async def list_trades(request: Request):
    ctx = _context(request)
    try:
        trades = await run_in_threadpool(ctx.polymarket.get_trades)
    except PolymarketError as exc:
        logger.exception(
            "Failed to fetch trades",
            extra=build_request_log_extra(request, event="trades_failed"),
        )
        return error_response(500, str(exc))

    return TradesEnvelope(success=True, count=len(trades), trades=trades)
