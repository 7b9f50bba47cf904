"""Test configuration for environments without the gateway's third-party stack."""
from __future__ import annotations

import importlib.util

import pytest

REQUIRED_MODULES = [
    "fastapi",
    "pydantic",
    "starlette",
    "httpx",
    "requests",
    "yaml",
    "appdirs",
    "py_clob_client",
    "x402",
]

missing = [mod for mod in REQUIRED_MODULES if importlib.util.find_spec(mod) is None]
if missing:
    pytest.skip(
        "Missing optional dependencies: " + ", ".join(sorted(missing)),
        allow_module_level=True,
    )
