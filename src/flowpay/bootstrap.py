"""Convenience bootstrapper for loading config, credentials, and the Polymarket facade."""

import logging
import os
from typing import Mapping, Optional, Tuple, get_args

from flowpay.config import AppConfig, load_config
from flowpay.polymarket.client import PolymarketClient
from flowpay.polymarket.markets import MarketMetadataClient

logger = logging.getLogger(__name__)

PRIVATE_KEY_ENV = "POLYMARKET_PRIVATE_KEY"


class ConfigurationError(RuntimeError):
    """Raised when required deployment settings or secrets are missing."""


def _load_private_key(environ: Mapping[str, str]) -> str:
    private_key = (environ.get(PRIVATE_KEY_ENV) or "").strip()
    if not private_key:
        raise ConfigurationError(f"{PRIVATE_KEY_ENV} environment variable is required")
    return private_key


def _supported_networks() -> Tuple[str, ...]:
    from x402.networks import SupportedNetworks

    return get_args(SupportedNetworks)


def _validate_payment_settings(config: AppConfig) -> None:
    if not config.payment.enabled:
        logger.warning(
            "Payment gate disabled; priced routes are served for free",
            extra={"event": "payments_disabled"},
        )
        return

    if not config.payment.pay_to_address:
        raise ConfigurationError(
            "PAYMENT_ADDRESS environment variable is required when payments are enabled"
        )

    supported = _supported_networks()
    if config.payment.network not in supported:
        raise ConfigurationError(
            f"Unsupported payment network '{config.payment.network}'; "
            f"expected one of: {', '.join(supported)}"
        )


def bootstrap(
    config: Optional[AppConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[PolymarketClient, AppConfig]:
    """Load configuration, read the wallet key, and return a ready facade.

    Args:
        config: Preloaded configuration; :func:`load_config` is used when omitted.
        environ: Environment mapping to read secrets from (defaults to ``os.environ``).

    Returns:
        A tuple of ``(PolymarketClient, AppConfig)``. Credentials are derived
        lazily by the facade, not here.

    Raises:
        ConfigurationError: If the private key is missing or malformed, or the
            payment settings are incomplete.
    """

    environ = os.environ if environ is None else environ
    config = config or load_config(environ=environ)

    _validate_payment_settings(config)
    private_key = _load_private_key(environ)

    markets = MarketMetadataClient(
        api_url=config.polymarket.markets_url,
        request_timeout=config.polymarket.request_timeout,
    )
    try:
        client = PolymarketClient.from_private_key(
            private_key,
            host=config.polymarket.host,
            chain_id=config.polymarket.chain_id,
            markets=markets,
        )
    except Exception as exc:  # noqa: BLE001 - key parsing errors vary by signer backend
        # The message must not echo the key.
        raise ConfigurationError(f"{PRIVATE_KEY_ENV} is not a valid private key") from exc
    return client, config


__all__ = [
    "bootstrap",
    "ConfigurationError",
    "PRIVATE_KEY_ENV",
]
