"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (DOCKEXEC__SECTION__KEY)
3. Global YAML (~/.config/dockexec/config.yaml)
4. Built-in defaults (this file)

Environment Variable Format:
    DOCKEXEC__<SECTION>__<KEY>=<VALUE>

Examples:
    DOCKEXEC__LOGGING__LEVEL=DEBUG
    DOCKEXEC__RUNTIME__EXECUTABLE=podman
    DOCKEXEC__TOOLCHAIN__GO=/usr/local/go/bin/go
    DOCKEXEC__MOUNTS__WORKDIR=/src
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Console destinations are limited to stderr: stdout carries the test
    binary's own output.
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v == "stderr":
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        DOCKEXEC__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. DEBUG prints the resolved mounts and final command.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class RuntimeConfig(BaseModel):
    """Container runtime configuration.

    Env vars:
        DOCKEXEC__RUNTIME__EXECUTABLE: Runtime CLI (default: docker)
    """

    executable: str = Field(
        default="docker",
        description="Container runtime CLI. Must accept docker-compatible run flags.",
    )
    compose_args: list[str] = Field(
        default_factory=lambda: ["compose"],
        description="Arguments selecting the compose frontend of the runtime CLI.",
    )


class ToolchainConfig(BaseModel):
    """Host Go toolchain configuration.

    Env vars:
        DOCKEXEC__TOOLCHAIN__GO: Go command used for environment queries
    """

    go: str = Field(default="go", description="Go command queried for module and cache paths.")


class MountsConfig(BaseModel):
    """Container-side paths for everything projected from the host."""

    workdir: str = "/start"
    binary: str = "/init"
    modcache: str = "/go/pkg/mod"
    gocache: str = "/go/cache"
    home: str = "/home"
    passwd: str = "/etc/passwd"
    group: str = "/etc/group"

    @field_validator("workdir", "binary", "modcache", "gocache", "home", "passwd", "group")
    @classmethod
    def validate_container_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"Container path must be absolute: {v}")
        return v


class DockexecConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    mounts: MountsConfig = Field(default_factory=MountsConfig)
