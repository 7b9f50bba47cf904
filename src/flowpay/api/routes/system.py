"""Free endpoints: API description and health."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request

from flowpay import APP_VERSION
from flowpay.api.models import HealthPayload
from flowpay.api.payments import priced_routes

router = APIRouter()


def _context(request: Request):
    return request.app.state.context


def _endpoint_catalog(ctx) -> Dict[str, Dict[str, str]]:
    catalog: Dict[str, Dict[str, str]] = {"markets": {}, "trading": {}}
    for route in priced_routes(ctx.config.payment):
        group = "markets" if route.path_pattern.startswith("/markets") else "trading"
        path = route.path_pattern.replace("/markets/*", "/markets/:tokenId")
        path = path.replace("/balance/*", "/balance/:tokenId").replace("/orders/*", "/orders/:orderId")
        label = f"{route.description} ({route.price})" if route.description else route.price
        catalog[group][f"{route.method} {path}"] = label
    return catalog


@router.get("/")
async def api_info(request: Request) -> Dict[str, Any]:
    ctx = _context(request)
    payment = ctx.config.payment
    return {
        "name": "FlowPay",
        "tagline": "Powering the next wave of on-chain intelligence",
        "description": "x402 payment gateway for Polymarket AI agent trading",
        "version": APP_VERSION,
        "endpoints": _endpoint_catalog(ctx),
        "paymentsEnabled": payment.enabled,
        "paymentNetwork": payment.network,
        "poweredBy": "x402 Protocol",
    }


@router.get("/health", response_model=HealthPayload)
async def healthcheck(request: Request) -> HealthPayload:
    ctx = _context(request)
    return HealthPayload(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        polymarket="connected" if ctx.polymarket.initialized else "not_initialized",
    )
