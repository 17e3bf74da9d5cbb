"""Host environment queries behind a narrow provider interface.

The context resolver never touches the process environment directly: it asks a
HostEnvironment. GoToolchainEnvironment is the real one; tests pass fakes.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from dockexec.core.errors import ContextResolutionError
from dockexec.core.logging import get_logger

log = get_logger("environment")

GO_ENV_KEYS = ("GOMODCACHE", "GOCACHE", "GOMOD")


@dataclass(frozen=True)
class ModuleInfo:
    """The main module enclosing the working directory."""

    dir: Path
    path: str


@dataclass(frozen=True)
class Identity:
    """Numeric user and group of the calling process."""

    uid: int
    gid: int


class HostEnvironment(Protocol):
    """Protocol for process-wide host state the resolver depends on."""

    @property
    def platform(self) -> str:
        """Host platform name as in sys.platform (e.g., 'linux', 'win32')."""
        ...

    def getcwd(self) -> Path:
        """Current working directory."""
        ...

    def go_env(self) -> dict[str, str]:
        """Values of GO_ENV_KEYS as reported by the Go toolchain.

        Raises:
            ContextResolutionError: If the query fails or its output is malformed.
        """
        ...

    def main_module(self, gomod: str) -> ModuleInfo:
        """Root directory and import path of the module owning *gomod*.

        Raises:
            ContextResolutionError: If the query fails or its output is malformed.
        """
        ...

    def identity(self) -> Identity | None:
        """Caller identity, or None where the platform has no numeric ids."""
        ...


class GoToolchainEnvironment:
    """HostEnvironment backed by the `go` command and the os module."""

    def __init__(self, go: str = "go") -> None:
        self._go = go

    @property
    def platform(self) -> str:
        return sys.platform

    def getcwd(self) -> Path:
        return Path.cwd()

    def go_env(self) -> dict[str, str]:
        cmd = [self._go, "env", "-json", *GO_ENV_KEYS]
        data = _decode_objects(cmd, self._run(cmd))
        if len(data) != 1:
            raise ContextResolutionError.bad_output(
                cmd, json.dumps(data), "expected a single JSON object"
            )
        env = data[0]
        missing = [key for key in GO_ENV_KEYS if not isinstance(env.get(key), str)]
        if missing:
            raise ContextResolutionError.bad_output(
                cmd, json.dumps(env), f"missing keys: {', '.join(missing)}"
            )
        return {key: env[key] for key in GO_ENV_KEYS}

    def main_module(self, gomod: str) -> ModuleInfo:
        cmd = [self._go, "list", "-m", "-json"]
        output = self._run(cmd)
        modules = _decode_objects(cmd, output)

        # In workspace mode every workspace module is listed; pick ours.
        chosen = modules[0]
        for module in modules:
            if module.get("GoMod") == gomod:
                chosen = module
                break

        module_dir = chosen.get("Dir")
        if not isinstance(module_dir, str) or not module_dir:
            raise ContextResolutionError.bad_output(cmd, output, "module has no Dir")
        return ModuleInfo(dir=Path(module_dir), path=str(chosen.get("Path", "")))

    def identity(self) -> Identity | None:
        getuid = getattr(os, "getuid", None)
        getgid = getattr(os, "getgid", None)
        if getuid is None or getgid is None:
            return None
        return Identity(uid=getuid(), gid=getgid())

    def _run(self, cmd: list[str]) -> str:
        log.debug("toolchain_query", command=cmd)
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            raise ContextResolutionError.command_failed(cmd, str(e)) from e
        if result.returncode != 0:
            raise ContextResolutionError.command_failed(cmd, result.stderr or result.stdout)
        return result.stdout


def _decode_objects(cmd: list[str], output: str) -> list[dict[str, object]]:
    """Decode a stream of concatenated JSON objects, as `go list -json` prints."""
    decoder = json.JSONDecoder()
    objects: list[dict[str, object]] = []
    pos = 0
    text = output.strip()
    while pos < len(text):
        try:
            obj, end = decoder.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            raise ContextResolutionError.bad_output(cmd, output, str(e)) from e
        if not isinstance(obj, dict):
            raise ContextResolutionError.bad_output(cmd, output, "expected a JSON object")
        objects.append(obj)
        pos = end
        while pos < len(text) and text[pos].isspace():
            pos += 1
    if not objects:
        raise ContextResolutionError.bad_output(cmd, output, "empty output")
    return objects
