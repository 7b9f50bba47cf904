# src/flowpay/polymarket/client.py

"""Facade over the Polymarket CLOB client and the public market metadata API."""

from __future__ import annotations

import logging
import threading
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, TypeVar

from py_clob_client.client import ClobClient
from py_clob_client.clob_types import (
    AssetType,
    BalanceAllowanceParams,
    OrderArgs,
    OrderType,
)
from py_clob_client.exceptions import PolyApiException

from flowpay.logging_config import structured_log_extra
from .exceptions import InitializationError, RemoteFetchError
from .markets import MarketMetadataClient
from .models import (
    USDC_SCALE,
    Balance,
    CancelAllResult,
    CancelResult,
    OrderBookSnapshot,
    OrderRequest,
    OrderResult,
    PriceLevel,
    Quote,
    TokenBalance,
)

CLOB_API_URL = "https://clob.polymarket.com"
POLYGON_CHAIN_ID = 137

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _field(raw: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an attribute-style response object."""

    if isinstance(raw, dict):
        return raw.get(name, default)
    return getattr(raw, name, default)


def _to_decimal(value: Any) -> Decimal:
    return Decimal(str(value)) if value not in (None, "") else Decimal(0)


def _scale_usdc(value: Any) -> Decimal:
    return _to_decimal(value) / USDC_SCALE


def _allowance_value(raw: Any) -> Any:
    allowance = _field(raw, "allowance")
    if allowance is not None:
        return allowance
    # Newer CLOB responses report one allowance per exchange contract.
    allowances = _field(raw, "allowances") or {}
    if isinstance(allowances, dict) and allowances:
        return max(_to_decimal(value) for value in allowances.values())
    return 0


def _parse_levels(levels: Any) -> List[PriceLevel]:
    return [
        PriceLevel(price=_to_decimal(_field(level, "price")), size=_to_decimal(_field(level, "size")))
        for level in levels or []
    ]


def _rejection_message(exc: PolyApiException, fallback: str) -> str:
    error_msg = getattr(exc, "error_msg", None)
    if isinstance(error_msg, dict):
        error_msg = error_msg.get("error") or error_msg.get("errorMsg")
    return str(error_msg) if error_msg else fallback


class PolymarketClient:
    """Single entry point for all calls to the Polymarket services.

    Credentialed operations lazily derive API credentials from the wallet's
    private key on first use. Derivation runs at most once even when many
    threads race on the first call; if it fails the client stays
    uninitialized and the next call tries again.
    """

    def __init__(self, clob: ClobClient, markets: MarketMetadataClient):
        self.clob = clob
        self.markets = markets
        self._init_lock = threading.Lock()
        self._initialized = threading.Event()

    @classmethod
    def from_private_key(
        cls,
        private_key: str,
        host: str = CLOB_API_URL,
        chain_id: int = POLYGON_CHAIN_ID,
        markets: Optional[MarketMetadataClient] = None,
    ) -> "PolymarketClient":
        clob = ClobClient(host, chain_id=chain_id, key=private_key)
        return cls(clob, markets or MarketMetadataClient())

    @property
    def initialized(self) -> bool:
        return self._initialized.is_set()

    def initialize(self) -> None:
        """Derive and install API credentials; a no-op once this has succeeded."""
        if self._initialized.is_set():
            return

        with self._init_lock:
            if self._initialized.is_set():
                return
            try:
                creds = self.clob.derive_api_key()
                self.clob.set_api_creds(creds)
            except Exception as exc:  # noqa: BLE001 - never leak raw client errors
                logger.error(
                    "Failed to initialize Polymarket client: %s",
                    exc,
                    extra=structured_log_extra(event="polymarket_init_failed"),
                )
                raise InitializationError("Failed to initialize Polymarket client") from exc
            self._initialized.set()

        logger.info(
            "Polymarket client initialized",
            extra=structured_log_extra(event="polymarket_initialized"),
        )

    def _fetch(self, call: Callable[[], T], message: str, event: str, **log_fields: Any) -> T:
        """Run ``call`` and normalise any failure into a :class:`RemoteFetchError`."""
        try:
            return call()
        except Exception as exc:  # noqa: BLE001 - normalised at the facade boundary
            logger.warning(
                "%s: %s",
                message,
                exc,
                extra=structured_log_extra(event=event, **log_fields),
            )
            raise RemoteFetchError(message) from exc

    def get_balance(self) -> Balance:
        """Collateral (USDC) balance and allowance in dollars."""
        self.initialize()

        def _call() -> Balance:
            raw = self.clob.get_balance_allowance(
                params=BalanceAllowanceParams(asset_type=AssetType.COLLATERAL)
            )
            return Balance(
                balance_usd=_scale_usdc(_field(raw, "balance")),
                allowance_usd=_scale_usdc(_allowance_value(raw)),
            )

        return self._fetch(_call, "Failed to fetch balance", "balance_fetch_failed")

    def get_token_balance(self, token_id: str) -> TokenBalance:
        """Balance and allowance held in one outcome token."""
        self.initialize()

        def _call() -> TokenBalance:
            raw = self.clob.get_balance_allowance(
                params=BalanceAllowanceParams(asset_type=AssetType.CONDITIONAL, token_id=token_id)
            )
            return TokenBalance(
                token_id=token_id,
                balance_usd=_scale_usdc(_field(raw, "balance")),
                allowance_usd=_scale_usdc(_allowance_value(raw)),
            )

        return self._fetch(
            _call, "Failed to fetch token balance", "token_balance_fetch_failed", token_id=token_id
        )

    def get_order_book(self, token_id: str) -> OrderBookSnapshot:
        self.initialize()

        def _call() -> OrderBookSnapshot:
            summary = self.clob.get_order_book(token_id)
            return OrderBookSnapshot.from_levels(
                token_id,
                bids=_parse_levels(_field(summary, "bids")),
                asks=_parse_levels(_field(summary, "asks")),
            )

        return self._fetch(
            _call, "Failed to fetch order book", "order_book_fetch_failed", token_id=token_id
        )

    def get_quote(self, token_id: str) -> Quote:
        return Quote.from_order_book(self.get_order_book(token_id))

    def create_order(self, order: OrderRequest) -> OrderResult:
        """
        Sign and submit a good-till-cancelled limit order.

        The order is expected to be validated already. Rejections by the CLOB
        come back as an unsuccessful :class:`OrderResult`; only transport
        failures raise.
        """
        self.initialize()

        order_args = OrderArgs(
            token_id=order.token_id,
            price=float(order.price),
            size=float(order.size),
            side=order.side.value,
        )
        log_fields = {"token_id": order.token_id, "side": order.side.value}

        try:
            signed_order = self.clob.create_order(order_args)
            response = self.clob.post_order(signed_order, OrderType.GTC)
        except PolyApiException as exc:
            if getattr(exc, "status_code", None) is None:
                logger.warning(
                    "Order submission failed before reaching the CLOB: %s",
                    exc,
                    extra=structured_log_extra(event="order_transport_failed", **log_fields),
                )
                raise RemoteFetchError("Failed to create order") from exc
            message = _rejection_message(exc, "Failed to create order")
            logger.warning(
                "Order rejected by CLOB: %s",
                message,
                extra=structured_log_extra(
                    event="order_rejected", status_code=exc.status_code, **log_fields
                ),
            )
            return OrderResult(order_id="", success=False, message=message)
        except Exception as exc:  # noqa: BLE001 - signing rejects bad ticks/sizes with plain errors
            logger.warning(
                "Order could not be built: %s",
                exc,
                extra=structured_log_extra(event="order_build_failed", **log_fields),
            )
            return OrderResult(
                order_id="", success=False, message=str(exc) or "Failed to create order"
            )

        if not _field(response, "success", True):
            message = _field(response, "errorMsg") or "Order was not accepted"
            logger.warning(
                "Order not accepted by CLOB: %s",
                message,
                extra=structured_log_extra(event="order_rejected", **log_fields),
            )
            return OrderResult(order_id=_field(response, "orderID") or "", success=False, message=message)

        order_id = _field(response, "orderID") or "unknown"
        logger.info(
            "Order placed",
            extra=structured_log_extra(event="order_placed", order_id=order_id, **log_fields),
        )
        return OrderResult(order_id=order_id, success=True, message="Order placed successfully")

    def _cancel(self, order_id: str) -> CancelResult:
        """Cancel one order; raises :class:`RemoteFetchError` unless the CLOB answered."""
        try:
            response = self.clob.cancel(order_id=order_id)
            not_canceled = _field(response, "not_canceled") or {}
            if isinstance(not_canceled, dict) and order_id in not_canceled:
                return CancelResult(success=False, message=str(not_canceled[order_id]))
        except PolyApiException as exc:
            if getattr(exc, "status_code", None) is None:
                raise RemoteFetchError("Failed to cancel order") from exc
            return CancelResult(
                success=False, message=_rejection_message(exc, "Failed to cancel order")
            )
        except Exception as exc:  # noqa: BLE001 - header signing and odd payloads raise plain errors
            raise RemoteFetchError("Failed to cancel order") from exc
        return CancelResult(success=True, message="Order cancelled successfully")

    def cancel_order(self, order_id: str) -> CancelResult:
        self.initialize()

        try:
            result = self._cancel(order_id)
        except RemoteFetchError:
            logger.warning(
                "Cancel request failed before reaching the CLOB",
                extra=structured_log_extra(event="cancel_transport_failed", order_id=order_id),
            )
            raise

        if result.success:
            logger.info(
                "Order cancelled",
                extra=structured_log_extra(event="order_cancelled", order_id=order_id),
            )
        else:
            logger.warning(
                "Cancel rejected by CLOB: %s",
                result.message,
                extra=structured_log_extra(event="cancel_rejected", order_id=order_id),
            )
        return result

    def cancel_all_orders(self, token_id: Optional[str] = None) -> CancelAllResult:
        """
        Cancel every open order, or only those for ``token_id``.

        Orders are cancelled one at a time; a failed cancellation is logged and
        recorded in ``failed_order_ids`` without stopping the rest.
        """
        orders = self.get_orders(token_id)

        cancelled_count = 0
        failed: List[str] = []
        for order in orders:
            order_id = str(_field(order, "id", ""))
            try:
                result = self._cancel(order_id)
            except Exception as exc:  # noqa: BLE001 - one failed order must not stop the rest
                result = CancelResult(success=False, message=str(exc) or type(exc).__name__)

            if result.success:
                cancelled_count += 1
                continue

            failed.append(order_id)
            logger.warning(
                "Failed to cancel order %s: %s",
                order_id,
                result.message,
                extra=structured_log_extra(
                    event="cancel_all_item_failed", order_id=order_id, token_id=token_id
                ),
            )

        logger.info(
            "Cancel all finished",
            extra=structured_log_extra(
                event="cancel_all_finished",
                token_id=token_id,
                cancelled_count=cancelled_count,
                failed_count=len(failed),
            ),
        )
        return CancelAllResult(success=True, cancelled_count=cancelled_count, failed_order_ids=failed)

    def get_orders(self, token_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Open orders, optionally only those whose ``asset_id`` is ``token_id``."""
        self.initialize()

        orders = self._fetch(
            lambda: list(self.clob.get_orders() or []),
            "Failed to fetch orders",
            "orders_fetch_failed",
            token_id=token_id,
        )
        if token_id:
            return [order for order in orders if _field(order, "asset_id") == token_id]
        return orders

    def get_trades(self) -> List[Dict[str, Any]]:
        self.initialize()

        return self._fetch(
            lambda: list(self.clob.get_trades() or []),
            "Failed to fetch trades",
            "trades_fetch_failed",
        )

    def get_markets(
        self,
        active: Optional[bool] = None,
        closed: Optional[bool] = None,
        archived: Optional[bool] = None,
        limit: Optional[int] = 50,
    ) -> List[Dict[str, Any]]:
        """Public market listing; needs no credentials."""
        return self.markets.get_markets(active=active, closed=closed, archived=archived, limit=limit)


__all__ = ["PolymarketClient", "CLOB_API_URL", "POLYGON_CHAIN_ID"]
