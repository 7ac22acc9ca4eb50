"""Core utilities for configuration, logging, and dependency wiring."""

from .config import (
    AppSettings,
    CoordinatorSettings,
    QueueSettings,
    StorageSettings,
    load_app_settings,
)
from .container import ServiceContainer
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "CoordinatorSettings",
    "QueueSettings",
    "ServiceContainer",
    "StorageSettings",
    "configure_logging",
    "load_app_settings",
]
