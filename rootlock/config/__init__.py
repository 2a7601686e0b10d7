"""
Runtime Configuration Module

Provides configuration loading and management for rootlock.
"""

from .runtime import (
    LoggingConfig,
    RuntimeConfig,
    TreeConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "RuntimeConfig",
    "TreeConfig",
    "LoggingConfig",
    "get_default_config",
    "set_default_config",
]
