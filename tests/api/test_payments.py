import pytest
from fastapi.responses import JSONResponse
from starlette.testclient import TestClient

from flowpay.api import payments
from flowpay.api.app import create_api
from flowpay.api.payments import PricedRoute, match_priced_route, priced_routes
from flowpay.bootstrap import ConfigurationError
from flowpay.config import PaymentConfig, PaymentRouteConfig


@pytest.fixture
def routes():
    return priced_routes(PaymentConfig())


@pytest.mark.parametrize(
    "method, path, expected_key, expected_price",
    [
        ("GET", "/markets", "GET /markets", "$0.01"),
        ("GET", "/markets/123/orderbook", "GET /markets/*/orderbook", "$0.02"),
        ("GET", "/markets/123/quote", "GET /markets/*/quote", "$0.005"),
        ("GET", "/balance", "GET /balance", "$0.01"),
        ("GET", "/balance/tok", "GET /balance/*", "$0.01"),
        ("POST", "/orders", "POST /orders", "$0.05"),
        ("GET", "/orders", "GET /orders", "$0.02"),
        ("DELETE", "/orders/o1", "DELETE /orders/*", "$0.03"),
        ("DELETE", "/orders", "DELETE /orders", "$0.05"),
        ("get", "/trades", "GET /trades", "$0.02"),
    ],
)
def test_match_priced_route(routes, method, path, expected_key, expected_price):
    route = match_priced_route(method, path, routes)

    assert route is not None
    assert route.key == expected_key
    assert route.price == expected_price


@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/"),
        ("GET", "/health"),
        ("OPTIONS", "/orders"),
        ("GET", "/markets/123/orderbook/extra"),
        ("GET", "/markets//quote"),
        ("PUT", "/orders"),
    ],
)
def test_free_or_unknown_routes_do_not_match(routes, method, path):
    assert match_priced_route(method, path, routes) is None


def test_priced_routes_follow_config_overrides():
    config = PaymentConfig(routes={"get /trades": PaymentRouteConfig(price="$1", description="x")})

    assert priced_routes(config) == [
        PricedRoute(method="GET", path_pattern="/trades", price="$1", description="x")
    ]


def _fake_handlers(config: PaymentConfig):
    async def require_payment(request, call_next):
        if request.headers.get("X-PAYMENT") == "paid":
            return await call_next(request)
        return JSONResponse({"error": "X-PAYMENT header is required"}, status_code=402)

    return [(route, require_payment) for route in priced_routes(config)]


@pytest.fixture
def gated_client(monkeypatch: pytest.MonkeyPatch, context_factory) -> TestClient:
    monkeypatch.setattr(payments, "build_payment_handlers", _fake_handlers)
    context = context_factory()
    context.config.payment.enabled = True
    client = TestClient(create_api(context), raise_server_exceptions=False)
    client.context = context
    return client


def test_priced_route_requires_payment(gated_client):
    response = gated_client.get("/markets")

    assert response.status_code == 402
    gated_client.context.polymarket.get_markets.assert_not_called()


def test_paid_request_reaches_route(gated_client):
    response = gated_client.get("/trades", headers={"X-PAYMENT": "paid"})

    assert response.status_code == 200
    gated_client.context.polymarket.get_trades.assert_called_once()


def test_free_routes_bypass_gate(gated_client):
    assert gated_client.get("/health").status_code == 200
    assert gated_client.get("/").status_code == 200


def test_disabled_gate_builds_no_handlers(monkeypatch: pytest.MonkeyPatch, context_factory):
    def _fail(config):
        raise AssertionError("payment handlers should not be built")

    monkeypatch.setattr(payments, "build_payment_handlers", _fail)
    client = TestClient(create_api(context_factory()))

    assert client.get("/markets").status_code == 200


PAY_TO = "0x" + "1" * 40


def test_default_config_builds_real_x402_handlers():
    config = PaymentConfig(pay_to_address=PAY_TO)

    handlers = payments.build_payment_handlers(config)

    assert [route.key for route, _ in handlers] == list(config.routes)
    assert all(callable(handler) for _, handler in handlers)


def test_unsupported_network_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="Invalid payment settings"):
        payments.build_payment_handlers(PaymentConfig(pay_to_address=PAY_TO, network="polygon"))


def test_real_gate_answers_unpaid_request_with_402(context_factory):
    context = context_factory()
    context.config.payment.enabled = True
    context.config.payment.pay_to_address = PAY_TO
    client = TestClient(create_api(context), raise_server_exceptions=False)

    response = client.get("/markets")

    assert response.status_code == 402
    context.polymarket.get_markets.assert_not_called()
    assert client.get("/health").status_code == 200
