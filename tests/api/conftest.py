"""Shared API fixtures for FastAPI route tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from starlette.testclient import TestClient

from flowpay.api.app import create_api
from flowpay.api.context import AppContext
from flowpay.config import AppConfig, PaymentConfig, PolymarketConfig, ServerConfig


def _build_app_config(*, default_markets_limit: int) -> AppConfig:
    """Create an in-memory :class:`AppConfig` with the payment gate off."""

    return AppConfig(
        server=ServerConfig(host="127.0.0.1", port=3000),
        polymarket=PolymarketConfig(default_markets_limit=default_markets_limit),
        payment=PaymentConfig(enabled=False, pay_to_address="0xpayee", network="base"),
    )


def build_test_context(*, default_markets_limit: int = 50) -> AppContext:
    """Construct an :class:`AppContext` around a mocked Polymarket facade."""

    polymarket = MagicMock(name="polymarket")
    polymarket.initialized = True
    polymarket.get_markets.return_value = []
    polymarket.get_orders.return_value = []
    polymarket.get_trades.return_value = []

    return AppContext(
        config=_build_app_config(default_markets_limit=default_markets_limit),
        polymarket=polymarket,
    )


@pytest.fixture
def mock_context() -> AppContext:
    return build_test_context()


@pytest.fixture
def client(mock_context: AppContext) -> TestClient:
    """A FastAPI test client wired with a mocked :class:`AppContext`."""

    app = create_api(mock_context)
    client = TestClient(app, raise_server_exceptions=False)
    client.context = mock_context
    return client


@pytest.fixture
def facade(client: TestClient) -> MagicMock:
    return client.context.polymarket  # type: ignore[attr-defined]


@pytest.fixture
def context_factory():
    """Factory for fresh mocked contexts, for tests that build their own app."""

    return build_test_context
