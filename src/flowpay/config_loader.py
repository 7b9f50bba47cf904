from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

import appdirs  # type: ignore[import-untyped]
import yaml  # type: ignore[import-untyped]

from flowpay.config_models import (
    AppConfig,
    PaymentConfig,
    PaymentRouteConfig,
    PolymarketConfig,
    ServerConfig,
    default_payment_routes,
)

logger = logging.getLogger(__name__)

ALLOWED_ENVS = {"dev", "staging", "prod"}

T = TypeVar("T")


def get_config_dir() -> Path:
    """
    Returns the OS-specific configuration directory for the gateway using appdirs.
    """
    return Path(appdirs.user_config_dir("flowpay"))


def _read_yaml_mapping(path: Path, event: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        logger.warning(
            "Configuration file is not a mapping; ignoring it",
            extra={"event": event, "config_path": str(path)},
        )
        return {}
    return data


def _deep_merge_dicts(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    merged = base.copy()
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def _section(raw_config: Dict[str, Any], name: str, config_path: Path) -> Dict[str, Any]:
    data = raw_config.get(name) or {}
    if not isinstance(data, dict):
        logger.warning(
            "%s config is not a mapping; using defaults",
            name.capitalize(),
            extra={"event": f"config_invalid_{name}", "config_path": str(config_path)},
        )
        return {}
    return data


def _coerce(value: Any, default: T, field_name: str, caster: Callable[[Any], T]) -> T:
    if value is None:
        return default
    try:
        return caster(value)
    except (TypeError, ValueError):
        logger.warning(
            "%s is invalid; using default",
            field_name,
            extra={"event": "config_invalid_value", "field": field_name, "value": str(value)},
        )
        return default


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _positive(caster: Callable[[Any], T]) -> Callable[[Any], T]:
    def _cast(value: Any) -> T:
        result = caster(value)
        if result <= 0:  # type: ignore[operator]
            raise ValueError("must be positive")
        return result

    return _cast


def _apply_env_overrides(raw_config: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """Overlay the well-known deployment environment variables onto ``raw_config``."""

    mapping = {
        "HOST": ("server", "host"),
        "PORT": ("server", "port"),
        "POLYMARKET_HOST": ("polymarket", "host"),
        "CHAIN_ID": ("polymarket", "chain_id"),
        "GAMMA_API_URL": ("polymarket", "markets_url"),
        "REQUEST_TIMEOUT": ("polymarket", "request_timeout"),
        "PAYMENTS_ENABLED": ("payment", "enabled"),
        "PAYMENT_ADDRESS": ("payment", "pay_to_address"),
        "NETWORK": ("payment", "network"),
        "FACILITATOR_URL": ("payment", "facilitator_url"),
    }
    overrides: Dict[str, Any] = {}
    for env_name, (section, key) in mapping.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        overrides.setdefault(section, {})[key] = value
    return _deep_merge_dicts(raw_config, overrides)


def _parse_payment_routes(raw_routes: Any, config_path: Path) -> Dict[str, PaymentRouteConfig]:
    routes = default_payment_routes()
    if raw_routes is None:
        return routes
    if not isinstance(raw_routes, dict):
        logger.warning(
            "Payment routes should be a mapping; using default price table",
            extra={"event": "config_invalid_payment_routes", "config_path": str(config_path)},
        )
        return routes

    for route_key, route_cfg in raw_routes.items():
        parts = str(route_key).split(" ", 1)
        if len(parts) != 2 or not parts[1].startswith("/"):
            logger.warning(
                "Payment route key %s must look like 'METHOD /path'; skipping",
                route_key,
                extra={"event": "config_invalid_payment_route_key", "route": route_key},
            )
            continue
        key = f"{parts[0].upper()} {parts[1]}"
        if isinstance(route_cfg, (str, int, float)):
            existing = routes.get(key)
            routes[key] = PaymentRouteConfig(
                price=str(route_cfg),
                description=existing.description if existing else "",
            )
        elif isinstance(route_cfg, dict) and route_cfg.get("price") is not None:
            routes[key] = PaymentRouteConfig(
                price=str(route_cfg["price"]),
                description=str(route_cfg.get("description", "")),
            )
        else:
            logger.warning(
                "Payment route %s has no price; skipping",
                route_key,
                extra={"event": "config_invalid_payment_route", "route": route_key},
            )
    return routes


def load_config(
    config_path: Optional[Path] = None,
    env: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """
    Loads the gateway configuration from YAML files and deployment environment variables.

    Precedence, lowest first: built-in defaults, ``config.yaml``, the
    ``config.<env>.yaml`` overlay, then environment variables such as ``PORT``
    or ``PAYMENT_ADDRESS``.
    """
    environ = os.environ if environ is None else environ

    if config_path is None:
        config_path = get_config_dir() / "config.yaml"
    config_path = Path(config_path).expanduser()

    initial_env = env if env is not None else environ.get("FLOWPAY_ENV")
    if initial_env not in ALLOWED_ENVS:
        if initial_env is not None:
            logger.warning(
                "Invalid environment '%s'; defaulting to 'dev'",
                initial_env,
                extra={"event": "config_invalid_env", "config_path": str(config_path)},
            )
        effective_env = "dev"
    else:
        effective_env = initial_env

    if config_path.exists():
        raw_config = _read_yaml_mapping(config_path, "config_invalid_format")
    else:
        logger.info(
            "Configuration file not found; using defaults",
            extra={"event": "config_missing_file", "config_path": str(config_path)},
        )
        raw_config = {}

    env_config_path = config_path.parent / f"config.{effective_env}.yaml"
    if env_config_path.exists():
        raw_config = _deep_merge_dicts(
            raw_config, _read_yaml_mapping(env_config_path, "config_invalid_env_file")
        )

    raw_config = _apply_env_overrides(raw_config, environ)

    defaults = AppConfig()

    server_data = _section(raw_config, "server", config_path)
    cors_origins = server_data.get("cors_origins", defaults.server.cors_origins)
    if isinstance(cors_origins, str):
        cors_origins = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
    elif not isinstance(cors_origins, list):
        logger.warning(
            "server.cors_origins should be a list; using defaults",
            extra={"event": "config_invalid_cors_origins", "config_path": str(config_path)},
        )
        cors_origins = defaults.server.cors_origins
    server_config = ServerConfig(
        host=str(server_data.get("host", defaults.server.host)),
        port=_coerce(server_data.get("port"), defaults.server.port, "server.port", _positive(int)),
        cors_origins=[str(origin) for origin in cors_origins],
    )

    polymarket_data = _section(raw_config, "polymarket", config_path)
    polymarket_config = PolymarketConfig(
        host=str(polymarket_data.get("host", defaults.polymarket.host)).rstrip("/"),
        chain_id=_coerce(
            polymarket_data.get("chain_id"), defaults.polymarket.chain_id, "polymarket.chain_id", int
        ),
        markets_url=str(
            polymarket_data.get("markets_url", defaults.polymarket.markets_url)
        ).rstrip("/"),
        request_timeout=_coerce(
            polymarket_data.get("request_timeout"),
            defaults.polymarket.request_timeout,
            "polymarket.request_timeout",
            _positive(float),
        ),
        default_markets_limit=_coerce(
            polymarket_data.get("default_markets_limit"),
            defaults.polymarket.default_markets_limit,
            "polymarket.default_markets_limit",
            _positive(int),
        ),
    )

    payment_data = _section(raw_config, "payment", config_path)
    payment_config = PaymentConfig(
        enabled=_coerce(
            payment_data.get("enabled"), defaults.payment.enabled, "payment.enabled", _parse_bool
        ),
        pay_to_address=str(payment_data.get("pay_to_address") or ""),
        network=str(payment_data.get("network", defaults.payment.network)),
        facilitator_url=payment_data.get("facilitator_url") or None,
        routes=_parse_payment_routes(payment_data.get("routes"), config_path),
    )

    return AppConfig(
        server=server_config,
        polymarket=polymarket_config,
        payment=payment_config,
    )
