"""Command line interface for the FlowPay gateway."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Callable

from flowpay.config import AppConfig, load_config
from flowpay.main import run as run_gateway


def _add_config_argument(subparser: argparse.ArgumentParser) -> None:
    """Attach the standard --config argument to a subparser."""

    subparser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.yaml (defaults to the per-user config directory)",
    )


def _redacted_config(config: AppConfig) -> dict:
    config_dict = asdict(config)
    payment = config_dict.get("payment", {})
    if payment.get("pay_to_address"):
        address = payment["pay_to_address"]
        payment["pay_to_address"] = f"{address[:6]}***" if len(address) > 6 else "***"
    return config_dict


def _serve_command(args: argparse.Namespace) -> int:
    """Start the gateway HTTP server."""

    return run_gateway(config_path=args.config)


def _show_config_command(args: argparse.Namespace) -> int:
    """Print the effective configuration with sensitive values masked."""

    config = load_config(args.config)
    print(json.dumps(_redacted_config(config), indent=2, sort_keys=True))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="flowpay", description="FlowPay gateway utilities")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the x402-gated Polymarket gateway")
    _add_config_argument(serve_parser)
    serve_parser.set_defaults(func=_serve_command)

    show_parser = subparsers.add_parser(
        "show-config", help="Print the effective configuration (secrets masked)"
    )
    _add_config_argument(show_parser)
    show_parser.set_defaults(func=_show_config_command)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the `flowpay` console script."""

    parser = _build_parser()
    args = parser.parse_args(argv)
    command: Callable[[argparse.Namespace], int] = getattr(args, "func")
    return command(args)


if __name__ == "__main__":
    sys.exit(main())
