"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local dockexec package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of dockexec modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("dockexec"):
        del sys.modules[module_name]


@dataclass
class FakeEnvironment:
    """In-memory HostEnvironment for resolver and CLI tests."""

    cwd: Path
    gomod: str = ""
    module_dir: Path | None = None
    module_path: str = "example.com/mod"
    modcache: str = "/home/user/go/pkg/mod"
    gocache: str = "/home/user/.cache/go-build"
    uid: int | None = 1000
    gid: int | None = 1000
    host_platform: str = "linux"
    calls: list[str] = field(default_factory=list)

    @property
    def platform(self) -> str:
        return self.host_platform

    def getcwd(self) -> Path:
        return self.cwd

    def go_env(self) -> dict[str, str]:
        self.calls.append("go_env")
        return {"GOMODCACHE": self.modcache, "GOCACHE": self.gocache, "GOMOD": self.gomod}

    def main_module(self, gomod: str):  # type: ignore[no-untyped-def]
        from dockexec.exec.environment import ModuleInfo

        self.calls.append("main_module")
        assert self.module_dir is not None
        return ModuleInfo(dir=self.module_dir, path=self.module_path)

    def identity(self):  # type: ignore[no-untyped-def]
        from dockexec.exec.environment import Identity

        if self.uid is None or self.gid is None:
            return None
        return Identity(uid=self.uid, gid=self.gid)


@pytest.fixture
def fake_env() -> Callable[..., FakeEnvironment]:
    """Factory for FakeEnvironment instances."""
    return FakeEnvironment


@pytest.fixture
def module_env(tmp_path: Path) -> FakeEnvironment:
    """Environment inside module root M, working directory M/cmd/blah."""
    root = tmp_path / "mod"
    workdir = root / "cmd" / "blah"
    workdir.mkdir(parents=True)
    (root / "go.mod").write_text("module example.com/mod\n")
    return FakeEnvironment(cwd=workdir, gomod=str(root / "go.mod"), module_dir=root)


@pytest.fixture
def adhoc_env(tmp_path: Path) -> FakeEnvironment:
    """Environment with no enclosing module."""
    workdir = tmp_path / "scratch"
    workdir.mkdir()
    return FakeEnvironment(cwd=workdir)
