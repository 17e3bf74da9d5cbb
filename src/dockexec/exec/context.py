"""Resolve the host build context and project it into the container.

Two modes exist:

- module: the working directory sits inside a Go module. The module root is
  mounted and the container starts in the same subdirectory the host is in,
  so `go test ./cmd/blah` run from a subdirectory sees the same relative
  layout (testdata lookups, relative paths in tests).
- adhoc: no module. The working directory itself is mounted.

In both modes the module and build caches are shared with the host, and the
container runs as the caller's uid:gid with a throwaway home directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath, PurePosixPath

from dockexec.config.models import MountsConfig
from dockexec.core.errors import ContextResolutionError
from dockexec.exec.environment import HostEnvironment, Identity, ModuleInfo

# What `go env GOMOD` prints when module mode is on but there is no go.mod.
_NULL_DEVICES = frozenset({"/dev/null", "NUL"})


class ContextMode(Enum):
    MODULE = "module"
    ADHOC = "adhoc"


@dataclass(frozen=True)
class HostContext:
    """Facts about the caller's build environment, resolved once."""

    workdir: Path
    modcache: str
    gocache: str
    home: Path
    platform: str
    identity: Identity | None = None
    module: ModuleInfo | None = None
    relative_workdir: PurePath | None = None

    @property
    def mode(self) -> ContextMode:
        return ContextMode.MODULE if self.module is not None else ContextMode.ADHOC

    @property
    def source_root(self) -> Path:
        """Host directory mounted as the container's project root."""
        return self.module.dir if self.module is not None else self.workdir


@dataclass(frozen=True)
class Mount:
    host_path: str
    container_path: str
    mode: str = "rw"

    def flag(self) -> str:
        return f"--volume={self.host_path}:{self.container_path}:{self.mode}"


@dataclass(frozen=True)
class MountPlan:
    """Mounts, working directory and environment for the container."""

    mounts: tuple[Mount, ...]
    workdir: str
    env: tuple[tuple[str, str], ...]
    identity: Identity | None = None

    def flags(self) -> list[str]:
        """Identity, mount and workdir flags, then environment flags."""
        flags: list[str] = []
        if self.identity is not None:
            flags.append(f"--user={self.identity.uid}:{self.identity.gid}")
        flags.extend(mount.flag() for mount in self.mounts)
        flags.append(f"--workdir={self.workdir}")
        flags.extend(f"--env={name}={value}" for name, value in self.env)
        return flags


def home_env_var(platform: str) -> str:
    """Name of the home directory variable on *platform*."""
    return "USERPROFILE" if platform.startswith("win") else "HOME"


def resolve_context(env: HostEnvironment, home: Path) -> HostContext:
    """Query the host once and return the resolved context.

    Args:
        env: Host environment provider.
        home: Empty directory standing in for the home directory.

    Raises:
        ContextResolutionError: If any toolchain query fails, a cache path is
            missing, or the working directory is outside the module root.
    """
    go_env = env.go_env()
    for key in ("GOMODCACHE", "GOCACHE"):
        if not go_env[key]:
            raise ContextResolutionError.bad_output(
                ["go", "env", key], go_env[key], f"{key} is empty"
            )

    workdir = env.getcwd()
    module: ModuleInfo | None = None
    relative: PurePath | None = None
    gomod = go_env["GOMOD"]
    if gomod and gomod not in _NULL_DEVICES:
        module = env.main_module(gomod)
        relative = _relative_to(workdir, module.dir)

    return HostContext(
        workdir=workdir,
        modcache=go_env["GOMODCACHE"],
        gocache=go_env["GOCACHE"],
        home=home,
        platform=env.platform,
        identity=env.identity(),
        module=module,
        relative_workdir=relative,
    )


def _relative_to(workdir: Path, root: Path) -> PurePath:
    try:
        return workdir.relative_to(root)
    except ValueError:
        pass
    # The toolchain may report a symlink-free path where the shell did not.
    try:
        return workdir.resolve().relative_to(root.resolve())
    except ValueError:
        raise ContextResolutionError.outside_module(str(workdir), str(root)) from None


def build_mount_plan(ctx: HostContext, mounts: MountsConfig | None = None) -> MountPlan:
    """Derive the container mounts, workdir and env from a resolved context."""
    mounts = mounts or MountsConfig()
    plan: list[Mount] = []

    if ctx.identity is not None:
        # uid/gid resolve to the same names inside as outside.
        plan.append(Mount("/etc/passwd", mounts.passwd, "ro"))
        plan.append(Mount("/etc/group", mounts.group, "ro"))

    plan.append(Mount(str(ctx.source_root), mounts.workdir))
    workdir = PurePosixPath(mounts.workdir)
    if ctx.relative_workdir is not None:
        workdir = workdir.joinpath(*ctx.relative_workdir.parts)

    plan.append(Mount(ctx.modcache, mounts.modcache))
    plan.append(Mount(ctx.gocache, mounts.gocache))
    plan.append(Mount(str(ctx.home), mounts.home))

    env = (
        ("GOMODCACHE", mounts.modcache),
        ("GOCACHE", mounts.gocache),
        (home_env_var(ctx.platform), mounts.home),
    )
    return MountPlan(mounts=tuple(plan), workdir=str(workdir), env=env, identity=ctx.identity)
