"""Run one test binary in a container, end to end."""

from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

from dockexec.config.models import DockexecConfig
from dockexec.core.logging import get_logger
from dockexec.exec.context import build_mount_plan, resolve_context
from dockexec.exec.environment import HostEnvironment
from dockexec.exec.invocation import ContainerInvocation, build_invocation
from dockexec.exec.locator import ParsedArguments
from dockexec.exec.runner import run_invocation

log = get_logger("ops")


def run_in_container(
    target: str,
    parsed: ParsedArguments,
    env: HostEnvironment,
    config: DockexecConfig,
    *,
    compose: bool = False,
    runner: Callable[[ContainerInvocation], int] = run_invocation,
) -> int:
    """Resolve the host context, build the invocation and run it.

    The substitute home directory lives exactly as long as this call and is
    removed whether the child succeeds, fails, or never starts.

    Returns:
        The child's exit status.

    Raises:
        ContextResolutionError: Before any container is started.
        RuntimeLaunchError: If the runtime could not be started.
    """
    with tempfile.TemporaryDirectory(prefix="dockexec-home-") as home:
        host = resolve_context(env, Path(home))
        log.debug(
            "context_resolved",
            mode=host.mode.value,
            source_root=str(host.source_root),
            module=host.module.path if host.module else None,
        )

        plan = build_mount_plan(host, config.mounts)
        log.debug("mount_plan", workdir=plan.workdir, mounts=len(plan.mounts))

        invocation = build_invocation(
            target,
            parsed,
            plan,
            runtime=config.runtime,
            mounts=config.mounts,
            compose=compose,
        )
        return runner(invocation)
