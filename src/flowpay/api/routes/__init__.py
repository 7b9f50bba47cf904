"""API route registrations for the gateway."""

from .markets import router as markets_router
from .system import router as system_router
from .trading import router as trading_router

__all__ = [
    "markets_router",
    "system_router",
    "trading_router",
]
