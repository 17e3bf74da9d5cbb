"""Config module exports."""

from dockexec.config.loader import load_config
from dockexec.config.models import (
    DockexecConfig,
    LoggingConfig,
    MountsConfig,
    RuntimeConfig,
    ToolchainConfig,
)

__all__ = [
    "load_config",
    "DockexecConfig",
    "LoggingConfig",
    "MountsConfig",
    "RuntimeConfig",
    "ToolchainConfig",
]
