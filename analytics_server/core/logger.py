"""
Logging setup shared by the API and services.

Usage:
    from ..core.logger import get_logger
    log = get_logger("api")
"""
from __future__ import annotations
import logging
import sys

ROOT_LOGGER = "analytics_server"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False

def configure_logging(level: str = "INFO") -> None:
    """Attach a single stdout handler to the package logger. Safe to call repeatedly."""
    global _configured
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level.upper())
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    root.addHandler(handler)
    root.propagate = False
    _configured = True

def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
