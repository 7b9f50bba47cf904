"""x402 payment gate wiring.

Payment verification and settlement are done by the ``x402`` package; this
module only decides which priced route a request belongs to and hands it to
the x402 handler built for that route's price.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from flowpay.bootstrap import ConfigurationError
from flowpay.config import PaymentConfig
from flowpay.logging_config import structured_log_extra

logger = logging.getLogger(__name__)

CallNext = Callable[[Request], Awaitable[Response]]
PaymentHandler = Callable[[Request, CallNext], Awaitable[Response]]


@dataclass(frozen=True)
class PricedRoute:
    method: str
    path_pattern: str
    price: str
    description: str = ""

    @property
    def key(self) -> str:
        return f"{self.method} {self.path_pattern}"

    def matches(self, method: str, path: str) -> bool:
        return method.upper() == self.method and _pattern_regex(self.path_pattern).fullmatch(path) is not None


def _pattern_regex(pattern: str) -> "re.Pattern[str]":
    # ``*`` stands for exactly one non-empty path segment.
    return re.compile("[^/]+".join(re.escape(part) for part in pattern.split("*")))


def priced_routes(config: PaymentConfig) -> List[PricedRoute]:
    routes = []
    for key, route_cfg in config.routes.items():
        method, path_pattern = key.split(" ", 1)
        routes.append(
            PricedRoute(
                method=method.upper(),
                path_pattern=path_pattern,
                price=route_cfg.price,
                description=route_cfg.description,
            )
        )
    return routes


def match_priced_route(
    method: str, path: str, routes: Sequence[PricedRoute]
) -> Optional[PricedRoute]:
    """Return the first priced route matching ``method`` and ``path``, if any."""

    for route in routes:
        if route.matches(method, path):
            return route
    return None


class PaymentGateMiddleware(BaseHTTPMiddleware):
    """Route priced requests through their x402 handler; let free ones pass."""

    def __init__(self, app, handlers: Sequence[Tuple[PricedRoute, PaymentHandler]]):
        super().__init__(app)
        self._handlers: Dict[str, PaymentHandler] = {route.key: handler for route, handler in handlers}
        self._routes = [route for route, _ in handlers]

    async def dispatch(self, request: Request, call_next: CallNext):  # type: ignore[override]
        route = match_priced_route(request.method, request.url.path, self._routes)
        if route is None:
            return await call_next(request)

        response = await self._handlers[route.key](request, call_next)
        if response.status_code == 402:
            logger.info(
                "Payment required",
                extra=structured_log_extra(
                    event="payment_required",
                    request_id=getattr(request.state, "request_id", None),
                    route=route.key,
                    price=route.price,
                ),
            )
        return response


def build_payment_handlers(config: PaymentConfig) -> List[Tuple[PricedRoute, PaymentHandler]]:
    """Create one x402 ``require_payment`` handler per priced route."""

    from x402.fastapi.middleware import require_payment

    facilitator_config: Optional[Dict[str, Any]] = (
        {"url": config.facilitator_url} if config.facilitator_url else None
    )

    handlers = []
    for route in priced_routes(config):
        try:
            handler = require_payment(
                price=route.price,
                pay_to_address=config.pay_to_address,
                path="*",
                description=route.description,
                mime_type="application/json",
                network=config.network,
                facilitator_config=facilitator_config,
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid payment settings for {route.key}: {exc}") from exc
        handlers.append((route, handler))
    return handlers


def install_payment_gate(app: FastAPI, config: PaymentConfig) -> None:
    """Attach the payment gate to ``app`` when payments are enabled."""

    if not config.enabled:
        return

    handlers = build_payment_handlers(config)
    app.add_middleware(PaymentGateMiddleware, handlers=handlers)
    logger.info(
        "Payment gate installed",
        extra=structured_log_extra(
            event="payment_gate_installed",
            network=config.network,
            priced_routes=len(handlers),
        ),
    )


__all__ = [
    "PricedRoute",
    "PaymentGateMiddleware",
    "priced_routes",
    "match_priced_route",
    "build_payment_handlers",
    "install_payment_gate",
]
