"""Request validation for the gateway routes.

Every check here runs before the Polymarket facade is touched, so an invalid
request never costs a remote call.
"""

from __future__ import annotations

from decimal import Decimal

from flowpay.api.models import OrderRequestPayload
from flowpay.polymarket.models import OrderRequest, OrderSide

REQUIRED_ORDER_FIELDS = ("tokenId", "price", "size", "side")


class ValidationError(ValueError):
    """Raised when request input is missing or malformed; mapped to HTTP 400."""


def require_identifier(value: str | None, label: str) -> str:
    """Return the stripped path identifier or raise when it is blank."""

    if value is None or not value.strip():
        raise ValidationError(f"{label} is required")
    return value.strip()


def validate_order_request(payload: OrderRequestPayload) -> OrderRequest:
    """Turn a raw order body into an :class:`OrderRequest` or raise :class:`ValidationError`."""

    token_id = (payload.token_id or "").strip()
    if not token_id or payload.price is None or payload.size is None or not payload.side:
        raise ValidationError(
            "Missing required fields: " + ", ".join(REQUIRED_ORDER_FIELDS)
        )

    try:
        side = OrderSide(payload.side)
    except ValueError:
        raise ValidationError("Side must be either BUY or SELL") from None

    price = payload.price
    if not price.is_finite() or price <= Decimal(0) or price >= Decimal(1):
        raise ValidationError("Price must be between 0 and 1")

    size = payload.size
    if not size.is_finite() or size <= Decimal(0):
        raise ValidationError("Size must be greater than 0")

    return OrderRequest(token_id=token_id, price=price, size=size, side=side)


__all__ = ["ValidationError", "require_identifier", "validate_order_request"]
