"""FastAPI application factory for the FlowPay gateway."""

from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from flowpay import APP_VERSION
from flowpay.api.context import AppContext
from flowpay.api.errors import handle_unexpected_error, register_exception_handlers
from flowpay.api.logging import build_request_log_extra
from flowpay.api.payments import install_payment_gate
from flowpay.api.routes import markets_router, system_router, trading_router

logger = logging.getLogger(__name__)


def create_api(context: AppContext) -> FastAPI:
    """Build a FastAPI app wired with routers and the x402 payment gate."""

    app = FastAPI(title="FlowPay", version=APP_VERSION)
    app.state.context = context

    register_exception_handlers(app)

    app.include_router(system_router)
    app.include_router(markets_router)
    app.include_router(trading_router)

    # Starlette runs the most recently added middleware first, so the payment
    # gate sits innermost and CORS outermost.
    install_payment_gate(app, context.config.payment)

    @app.middleware("http")
    async def inject_request_id(request: Request, call_next):
        request.state.request_id = request.headers.get("X-Request-ID") or str(uuid4())
        try:
            response = await call_next(request)
        except Exception as exc:  # noqa: BLE001
            response = await handle_unexpected_error(request, exc)
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=context.config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-PAYMENT-RESPONSE"],
    )

    logger.info(
        "Gateway API initialized",
        extra=build_request_log_extra(
            None,
            event="api_initialized",
            payments_enabled=context.config.payment.enabled,
            network=context.config.payment.network,
        ),
    )
    return app


__all__ = ["create_api"]
