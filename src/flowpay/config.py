from __future__ import annotations

# Re-export loader helpers
from .config_loader import ALLOWED_ENVS, get_config_dir, load_config

# Re-export config models
from .config_models import (
    AppConfig,
    PaymentConfig,
    PaymentRouteConfig,
    PolymarketConfig,
    ServerConfig,
    default_payment_routes,
)

__all__ = [
    # models
    "ServerConfig",
    "PolymarketConfig",
    "PaymentRouteConfig",
    "PaymentConfig",
    "AppConfig",
    "default_payment_routes",
    # loader
    "ALLOWED_ENVS",
    "get_config_dir",
    "load_config",
]
