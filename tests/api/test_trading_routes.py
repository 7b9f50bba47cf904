from decimal import Decimal

import pytest

from flowpay.polymarket.exceptions import InitializationError, RemoteFetchError
from flowpay.polymarket.models import (
    Balance,
    CancelAllResult,
    CancelResult,
    OrderRequest,
    OrderResult,
    OrderSide,
    TokenBalance,
)


def test_balance_enveloped(client, facade):
    facade.get_balance.return_value = Balance(
        balance_usd=Decimal("12.5"), allowance_usd=Decimal("100")
    )

    response = client.get("/balance")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "balance": {"balanceUSD": 12.5, "allowanceUSD": 100.0},
    }


def test_token_balance_enveloped(client, facade):
    facade.get_token_balance.return_value = TokenBalance(
        token_id="tok", balance_usd=Decimal("3"), allowance_usd=Decimal("0")
    )

    response = client.get("/balance/tok")

    assert response.status_code == 200
    assert response.json()["balance"] == {
        "tokenId": "tok",
        "balanceUSD": 3.0,
        "allowanceUSD": 0.0,
    }
    facade.get_token_balance.assert_called_once_with("tok")


def test_balance_initialization_failure_is_500(client, facade):
    facade.get_balance.side_effect = InitializationError("Failed to initialize Polymarket client")

    response = client.get("/balance")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Failed to initialize Polymarket client",
    }


def test_create_order_forwards_validated_request(client, facade):
    facade.create_order.return_value = OrderResult(
        order_id="0xabc", success=True, message="Order placed successfully"
    )

    response = client.post(
        "/orders", json={"tokenId": "T", "price": 0.5, "size": 10, "side": "BUY"}
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "order": {"orderId": "0xabc", "success": True, "message": "Order placed successfully"},
    }
    facade.create_order.assert_called_once_with(
        OrderRequest(token_id="T", price=Decimal("0.5"), size=Decimal("10"), side=OrderSide.BUY)
    )


def test_create_order_rejection_is_not_a_server_error(client, facade):
    facade.create_order.return_value = OrderResult(
        order_id="", success=False, message="not enough balance / allowance"
    )

    response = client.post(
        "/orders", json={"tokenId": "T", "price": 0.5, "size": 10, "side": "BUY"}
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": False,
        "order": {
            "orderId": "",
            "success": False,
            "message": "not enough balance / allowance",
        },
    }


@pytest.mark.parametrize(
    "body, error",
    [
        ({"tokenId": "T", "price": 0, "size": 10, "side": "BUY"}, "Price must be between 0 and 1"),
        ({"tokenId": "T", "price": 1, "size": 10, "side": "BUY"}, "Price must be between 0 and 1"),
        ({"tokenId": "T", "price": -0.1, "size": 10, "side": "BUY"}, "Price must be between 0 and 1"),
        ({"tokenId": "T", "price": 0.5, "size": 0, "side": "BUY"}, "Size must be greater than 0"),
        ({"tokenId": "T", "price": 0.5, "size": -5, "side": "SELL"}, "Size must be greater than 0"),
        ({"tokenId": "T", "price": 0.5, "size": 10, "side": "HOLD"}, "Side must be either BUY or SELL"),
        (
            {"price": 0.5, "size": 10, "side": "BUY"},
            "Missing required fields: tokenId, price, size, side",
        ),
    ],
)
def test_create_order_validation_short_circuits(client, facade, body, error):
    response = client.post("/orders", json=body)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": error}
    facade.create_order.assert_not_called()


def test_create_order_rejects_non_numeric_price(client, facade):
    response = client.post(
        "/orders", json={"tokenId": "T", "price": "cheap", "size": 10, "side": "BUY"}
    )

    assert response.status_code == 400
    assert response.json()["success"] is False
    facade.create_order.assert_not_called()


def test_create_order_rejects_missing_body(client, facade):
    response = client.post("/orders")

    assert response.status_code == 400
    assert response.json()["success"] is False
    facade.create_order.assert_not_called()


def test_create_order_transport_failure_is_500(client, facade):
    facade.create_order.side_effect = RemoteFetchError("Failed to create order")

    response = client.post(
        "/orders", json={"tokenId": "T", "price": "0.25", "size": "4", "side": "SELL"}
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to create order"}


def test_list_orders_with_token_filter(client, facade):
    facade.get_orders.return_value = [{"id": "o1", "asset_id": "tok"}]

    response = client.get("/orders?tokenId=tok")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "count": 1,
        "orders": [{"id": "o1", "asset_id": "tok"}],
    }
    facade.get_orders.assert_called_once_with("tok")


def test_list_orders_without_filter(client, facade):
    response = client.get("/orders")

    assert response.status_code == 200
    assert response.json() == {"success": True, "count": 0, "orders": []}
    facade.get_orders.assert_called_once_with(None)


def test_cancel_order_passes_result_through(client, facade):
    facade.cancel_order.return_value = CancelResult(
        success=False, message="order can't be found - already canceled or matched"
    )

    response = client.delete("/orders/o1")

    assert response.status_code == 200
    assert response.json() == {
        "success": False,
        "message": "order can't be found - already canceled or matched",
    }
    facade.cancel_order.assert_called_once_with("o1")


def test_cancel_all_reports_count_and_failures(client, facade):
    facade.cancel_all_orders.return_value = CancelAllResult(
        success=True, cancelled_count=2, failed_order_ids=["o3"]
    )

    response = client.delete("/orders?tokenId=tok")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "cancelledCount": 2,
        "failedOrderIds": ["o3"],
    }
    facade.cancel_all_orders.assert_called_once_with("tok")


def test_list_trades_enveloped(client, facade):
    facade.get_trades.return_value = [{"id": "t1"}]

    response = client.get("/trades")

    assert response.status_code == 200
    assert response.json() == {"success": True, "count": 1, "trades": [{"id": "t1"}]}


def test_unexpected_error_is_generic_500(client, facade):
    facade.get_trades.side_effect = KeyError("boom")

    response = client.get("/trades")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}


def test_unexpected_error_keeps_request_id_and_cors_headers(client, facade):
    facade.get_trades.side_effect = RuntimeError("boom")

    response = client.get(
        "/trades", headers={"X-Request-ID": "req-500", "Origin": "https://agent.example"}
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}
    assert response.headers["X-Request-ID"] == "req-500"
    assert response.headers["access-control-allow-origin"] == "*"
