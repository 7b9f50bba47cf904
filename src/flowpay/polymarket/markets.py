# src/flowpay/polymarket/markets.py

import logging
from typing import Any, Dict, List, Optional

import requests

from flowpay.logging_config import structured_log_extra
from .exceptions import RemoteFetchError

GAMMA_API_URL = "https://gamma-api.polymarket.com"

logger = logging.getLogger(__name__)


class MarketMetadataClient:
    """Read-only client for the public Polymarket market metadata (Gamma) API."""

    def __init__(
        self,
        api_url: str = GAMMA_API_URL,
        request_timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.request_timeout = request_timeout

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "FlowPay/1.0"})

    def get_markets(
        self,
        active: Optional[bool] = None,
        closed: Optional[bool] = None,
        archived: Optional[bool] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Lists markets. Filters left as ``None`` are not sent, so the service
        applies its own defaults for them.
        """
        params: Dict[str, str] = {}
        for name, value in (("active", active), ("closed", closed), ("archived", archived)):
            if value is not None:
                params[name] = "true" if value else "false"
        if limit:
            params["limit"] = str(limit)

        url = f"{self.api_url}/markets"
        try:
            response = self.session.get(url, params=params, timeout=self.request_timeout)
            response.raise_for_status()
            markets = response.json()
        except requests.exceptions.Timeout as e:
            logger.warning(
                "Market metadata request timed out: %s",
                e,
                extra=structured_log_extra(event="markets_fetch_timeout", url=url),
            )
            raise RemoteFetchError("Failed to fetch markets") from e
        except requests.exceptions.RequestException as e:
            logger.warning(
                "Market metadata request failed: %s",
                e,
                extra=structured_log_extra(event="markets_fetch_failed", url=url),
            )
            raise RemoteFetchError("Failed to fetch markets") from e
        except ValueError as e:
            logger.warning(
                "Market metadata response is not JSON: %s",
                e,
                extra=structured_log_extra(event="markets_invalid_payload", url=url),
            )
            raise RemoteFetchError("Failed to fetch markets") from e

        if not isinstance(markets, list):
            logger.warning(
                "Market metadata response is not a list",
                extra=structured_log_extra(
                    event="markets_invalid_payload", url=url, payload_type=type(markets).__name__
                ),
            )
            raise RemoteFetchError("Failed to fetch markets")

        return markets
