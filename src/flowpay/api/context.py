"""Gateway application context helpers."""

from dataclasses import dataclass
from typing import Optional

from flowpay.bootstrap import bootstrap
from flowpay.config import AppConfig
from flowpay.polymarket.client import PolymarketClient


@dataclass
class AppContext:
    """Configuration and the Polymarket facade shared by every route."""

    config: AppConfig
    polymarket: PolymarketClient


def build_app_context(config: Optional[AppConfig] = None) -> AppContext:
    """Load configuration and credentials and wire the Polymarket facade.

    Args:
        config: Preloaded configuration; loaded from disk and environment when
            omitted.

    Returns:
        An :class:`AppContext` whose facade has not yet derived credentials.
    """

    polymarket, config = bootstrap(config)
    return AppContext(config=config, polymarket=polymarket)


__all__ = ["AppContext", "build_app_context"]
