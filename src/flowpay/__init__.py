"""FlowPay: an x402 pay-per-request gateway for Polymarket trading.

:data:`APP_VERSION` comes from the installed ``flowpay`` distribution, or is
``"0.0.0-dev"`` when running from a plain source checkout.
"""

from importlib import metadata

try:
    APP_VERSION: str = metadata.version("flowpay")
except metadata.PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"

__version__ = APP_VERSION

__all__ = ["APP_VERSION", "__version__"]
