"""Request-scoped logging extras for the gateway routes."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from flowpay.logging_config import get_log_environment, structured_log_extra


def _request_fields(request: Request) -> Dict[str, Any]:
    fields: Dict[str, Any] = {
        "http_method": request.method,
        "path": request.url.path,
        # Whether the caller attached an x402 payment proof.
        "paid": "X-PAYMENT" in request.headers,
    }
    route = request.scope.get("route")
    if route is not None and getattr(route, "name", None):
        fields["route_name"] = route.name
    return fields


def build_request_log_extra(request: Request | None, event: str | None = None, **kwargs: Any):
    """Return logging ``extra`` for a gateway request.

    The request id set by the app middleware (or sent by the caller) is always
    attached; ``event`` defaults to ``http_request``.
    """

    event = kwargs.pop("event", event) or "http_request"
    if request is None:
        return structured_log_extra(env=get_log_environment(), event=event, **kwargs)

    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")
    return structured_log_extra(
        env=get_log_environment(),
        request_id=request_id,
        event=event,
        **_request_fields(request),
        **kwargs,
    )


__all__ = ["build_request_log_extra"]
