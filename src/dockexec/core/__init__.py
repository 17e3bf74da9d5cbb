"""Core module exports."""

from dockexec.core.errors import (
    BinaryNotFoundError,
    ConfigError,
    ContextResolutionError,
    DockexecError,
    ErrorCode,
    RuntimeLaunchError,
    UsageError,
)
from dockexec.core.logging import configure_logging, get_logger

__all__ = [
    # Errors
    "BinaryNotFoundError",
    "ConfigError",
    "ContextResolutionError",
    "DockexecError",
    "ErrorCode",
    "RuntimeLaunchError",
    "UsageError",
    # Logging
    "configure_logging",
    "get_logger",
]
