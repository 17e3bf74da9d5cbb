"""dockexec error types with typed error codes.

Error code ranges:
- 1xxx: Usage
- 2xxx: Config
- 3xxx: Context resolution
- 4xxx: Runtime launch

A failing test binary is not an error here: its exit status is forwarded
verbatim by the CLI.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

EXIT_FAILURE = 1
EXIT_USAGE = 2


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Usage (1xxx)
    USAGE_TOO_FEW_ARGS = 1001
    USAGE_BINARY_NOT_FOUND = 1002

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Context (3xxx)
    CONTEXT_COMMAND_FAILED = 3001
    CONTEXT_BAD_OUTPUT = 3002
    CONTEXT_OUTSIDE_MODULE = 3003

    # Runtime (4xxx)
    RUNTIME_NOT_STARTABLE = 4001


@dataclass(frozen=True, slots=True)
class DockexecError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    @property
    def exit_status(self) -> int:
        """Process exit status the CLI reports for this error."""
        return EXIT_FAILURE

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class UsageError(DockexecError):
    """Malformed invocation. Reported with usage text, never a traceback."""

    @property
    def exit_status(self) -> int:
        return EXIT_USAGE

    @classmethod
    def too_few_args(cls, args: Sequence[str]) -> "UsageError":
        return cls(
            code=ErrorCode.USAGE_TOO_FEW_ARGS,
            message="expected a target followed by the test binary path",
            details={"args": list(args)},
        )


class BinaryNotFoundError(UsageError):
    """No argument looked like a compiled test binary."""

    @classmethod
    def from_args(cls, args: Sequence[str]) -> "BinaryNotFoundError":
        return cls(
            code=ErrorCode.USAGE_BINARY_NOT_FOUND,
            message="could not find the test binary argument",
            details={"args": list(args)},
        )


class ConfigError(DockexecError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class ContextResolutionError(DockexecError):
    """The host toolchain could not describe the build environment."""

    @classmethod
    def command_failed(cls, cmd: Sequence[str], output: str) -> "ContextResolutionError":
        joined = " ".join(cmd)
        return cls(
            code=ErrorCode.CONTEXT_COMMAND_FAILED,
            message=f"{joined} failed: {output.strip()}",
            details={"command": list(cmd), "output": output},
        )

    @classmethod
    def bad_output(
        cls, cmd: Sequence[str], output: str, reason: str
    ) -> "ContextResolutionError":
        joined = " ".join(cmd)
        return cls(
            code=ErrorCode.CONTEXT_BAD_OUTPUT,
            message=f"unexpected output from {joined}: {reason}",
            details={"command": list(cmd), "output": output, "reason": reason},
        )

    @classmethod
    def outside_module(cls, workdir: str, module_root: str) -> "ContextResolutionError":
        return cls(
            code=ErrorCode.CONTEXT_OUTSIDE_MODULE,
            message=f"working directory {workdir} is not inside module root {module_root}",
            details={"workdir": workdir, "module_root": module_root},
        )


class RuntimeLaunchError(DockexecError):
    """The container runtime could not be started at all."""

    @classmethod
    def not_startable(cls, executable: str, reason: str) -> "RuntimeLaunchError":
        return cls(
            code=ErrorCode.RUNTIME_NOT_STARTABLE,
            message=f"could not start {executable}: {reason}",
            details={"executable": executable, "reason": reason},
        )

