"""Core utilities for the proxy application."""

from bridge.app.core.clock import Clock, ManualClock, SystemClock
from bridge.app.core.config import Settings, settings
from bridge.app.core.logging import get_logger, setup_logging

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "Settings",
    "settings",
    "get_logger",
    "setup_logging",
]
