"""Container execution of compiled Go test binaries."""

from dockexec.exec.context import (
    ContextMode,
    HostContext,
    Mount,
    MountPlan,
    build_mount_plan,
    resolve_context,
)
from dockexec.exec.environment import GoToolchainEnvironment, HostEnvironment, Identity, ModuleInfo
from dockexec.exec.invocation import ContainerInvocation, build_invocation
from dockexec.exec.locator import ParsedArguments, is_test_binary, locate_binary, parse_args
from dockexec.exec.ops import run_in_container
from dockexec.exec.runner import run_invocation

__all__ = [
    # Locator
    "ParsedArguments",
    "is_test_binary",
    "locate_binary",
    "parse_args",
    # Environment
    "GoToolchainEnvironment",
    "HostEnvironment",
    "Identity",
    "ModuleInfo",
    # Context
    "ContextMode",
    "HostContext",
    "Mount",
    "MountPlan",
    "build_mount_plan",
    "resolve_context",
    # Invocation
    "ContainerInvocation",
    "build_invocation",
    "run_invocation",
    "run_in_container",
]
