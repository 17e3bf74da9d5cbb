"""Compose the container runtime command line."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from dockexec.config.models import MountsConfig, RuntimeConfig
from dockexec.exec.context import MountPlan
from dockexec.exec.locator import ParsedArguments


@dataclass(frozen=True)
class ContainerInvocation:
    """Final argv for the container runtime, executable first."""

    argv: tuple[str, ...]

    @property
    def executable(self) -> str:
        return self.argv[0]


def build_invocation(
    target: str,
    parsed: ParsedArguments,
    plan: MountPlan,
    *,
    runtime: RuntimeConfig | None = None,
    mounts: MountsConfig | None = None,
    compose: bool = False,
) -> ContainerInvocation:
    """Build the runtime argv in its fixed order.

    Lifecycle flags, entrypoint, identity/mounts/workdir, env, then the
    caller's runtime flags (last, so they win where the runtime lets later
    flags override earlier ones), ``--``, the target, and the flags for the
    test binary. Caller flags are passed through without validation.
    """
    runtime = runtime or RuntimeConfig()
    mounts = mounts or MountsConfig()

    argv: list[str] = [runtime.executable]
    argv.extend(_lifecycle_args(runtime, compose))
    argv.append(f"--volume={parsed.binary_path}:{mounts.binary}:ro")
    argv.append(f"--entrypoint={mounts.binary}")
    argv.extend(plan.flags())
    argv.extend(parsed.runtime_flags)
    argv.append("--")
    argv.append(target)
    argv.extend(parsed.forwarded_flags)
    return ContainerInvocation(argv=tuple(argv))


def _lifecycle_args(runtime: RuntimeConfig, compose: bool) -> Sequence[str]:
    # Foreground is the default for both frontends; only removal is explicit.
    if compose:
        return [*runtime.compose_args, "run", "--rm"]
    return ["run", "--rm"]
