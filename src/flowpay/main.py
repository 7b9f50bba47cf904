"""Process entry point: bootstrap the facade and serve the gateway with uvicorn."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import uvicorn

from flowpay import APP_VERSION
from flowpay.api.app import create_api
from flowpay.api.context import AppContext, build_app_context
from flowpay.bootstrap import ConfigurationError
from flowpay.config import load_config
from flowpay.logging_config import configure_logging, get_log_environment, structured_log_extra
from flowpay.polymarket.exceptions import InitializationError

logger = logging.getLogger(__name__)


def prepare_context(config_path: Optional[Path] = None) -> AppContext:
    """Load config, build the facade, and derive credentials up front."""

    config = load_config(config_path)
    context = build_app_context(config)
    context.polymarket.initialize()
    return context


def run(config_path: Optional[Path] = None) -> int:
    """Bootstrap services and host the gateway API until interrupted."""

    configure_logging(level=logging.INFO)

    try:
        context = prepare_context(config_path)
        app = create_api(context)
    except ConfigurationError as exc:
        logger.error(
            "Invalid gateway configuration: %s",
            exc,
            extra=structured_log_extra(event="startup_config_error"),
        )
        return 1
    except InitializationError as exc:
        logger.error(
            "Polymarket client could not be initialized: %s",
            exc,
            extra=structured_log_extra(event="startup_init_error"),
        )
        return 1

    config = context.config
    logger.info(
        "Starting FlowPay gateway",
        extra=structured_log_extra(
            event="startup",
            env=get_log_environment(),
            app_version=APP_VERSION,
            host=config.server.host,
            port=config.server.port,
            polymarket_host=config.polymarket.host,
            network=config.payment.network,
            payments_enabled=config.payment.enabled,
        ),
    )

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="info",
        log_config=None,
    )

    logger.info("Shutdown complete", extra=structured_log_extra(event="shutdown_complete"))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(run())
