from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class PolymarketConfig:
    host: str = "https://clob.polymarket.com"
    chain_id: int = 137
    markets_url: str = "https://gamma-api.polymarket.com"
    # Seconds; applies to the public market metadata service.
    request_timeout: float = 10.0
    default_markets_limit: int = 50


@dataclass
class PaymentRouteConfig:
    price: str
    description: str = ""


def default_payment_routes() -> Dict[str, PaymentRouteConfig]:
    """Return the stock price table keyed by ``"METHOD /path-pattern"``."""

    return {
        "GET /markets": PaymentRouteConfig("$0.01", "Get active Polymarket markets"),
        "GET /markets/*/orderbook": PaymentRouteConfig(
            "$0.02", "Get order book data for a specific token"
        ),
        "GET /markets/*/quote": PaymentRouteConfig(
            "$0.005", "Get best bid/ask quote for a token"
        ),
        "GET /balance": PaymentRouteConfig("$0.01", "Get USDC balance and allowance"),
        "GET /balance/*": PaymentRouteConfig(
            "$0.01", "Get token balance for a specific outcome"
        ),
        "POST /orders": PaymentRouteConfig("$0.05", "Create a new order (buy or sell)"),
        "GET /orders": PaymentRouteConfig("$0.02", "Get open orders"),
        "DELETE /orders/*": PaymentRouteConfig("$0.03", "Cancel a specific order"),
        "DELETE /orders": PaymentRouteConfig("$0.05", "Cancel all orders"),
        "GET /trades": PaymentRouteConfig("$0.02", "Get trade history"),
    }


@dataclass
class PaymentConfig:
    enabled: bool = True
    pay_to_address: str = ""
    # Settlement network for x402 payments; must be one x402 supports.
    network: str = "base"
    facilitator_url: Optional[str] = None
    routes: Dict[str, PaymentRouteConfig] = field(default_factory=default_payment_routes)


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    polymarket: PolymarketConfig = field(default_factory=PolymarketConfig)
    payment: PaymentConfig = field(default_factory=PaymentConfig)
