"""Tests for the process runner and the end-to-end run operation."""

from __future__ import annotations

import os
import signal
import subprocess
import sys
import tempfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from dockexec.config.models import DockexecConfig
from dockexec.core.errors import ContextResolutionError, ErrorCode, RuntimeLaunchError
from dockexec.exec.invocation import ContainerInvocation
from dockexec.exec.locator import parse_args
from dockexec.exec.ops import run_in_container
from dockexec.exec.runner import run_invocation

SRC_DIR = Path(__file__).resolve().parents[2] / "src"

# Stands in for the runtime client: traps SIGINT, takes a while to clean up,
# then exits on its own terms.
_SLOW_INTERRUPT_CHILD = """
import pathlib, signal, sys, time
marker = pathlib.Path(sys.argv[1])
def on_interrupt(signum, frame):
    time.sleep(0.5)
    marker.write_text("cleaned up")
    raise SystemExit(130)
signal.signal(signal.SIGINT, on_interrupt)
(marker.parent / "ready").write_text("")
time.sleep(30)
"""

_WRAPPER = """
import sys
from dockexec.core.logging import configure_logging
from dockexec.exec.invocation import ContainerInvocation
from dockexec.exec.runner import run_invocation
configure_logging()
raise SystemExit(run_invocation(ContainerInvocation(argv=tuple(sys.argv[1:]))))
"""


class TestRunInvocation:
    """run_invocation() tests."""

    def test_given_successful_child_when_run_then_zero(self) -> None:
        invocation = ContainerInvocation(argv=(sys.executable, "-c", "pass"))

        assert run_invocation(invocation) == 0

    def test_given_failing_child_when_run_then_status_forwarded(self) -> None:
        """The child's status is returned verbatim."""
        invocation = ContainerInvocation(argv=(sys.executable, "-c", "raise SystemExit(7)"))

        assert run_invocation(invocation) == 7

    @patch("dockexec.exec.runner.subprocess.Popen")
    def test_given_stdio_when_run_then_not_captured(self, mock_popen: MagicMock) -> None:
        """Streams are inherited, so nothing is captured or piped."""
        mock_popen.return_value.wait.return_value = 0

        run_invocation(ContainerInvocation(argv=("docker", "run")))

        assert mock_popen.call_args.args[0] == ["docker", "run"]
        kwargs = mock_popen.call_args.kwargs
        for key in ("stdin", "stdout", "stderr", "capture_output"):
            assert key not in kwargs

    @patch("dockexec.exec.runner.subprocess.Popen")
    def test_given_signalled_child_when_run_then_shell_style_status(
        self, mock_popen: MagicMock
    ) -> None:
        mock_popen.return_value.wait.return_value = -9

        assert run_invocation(ContainerInvocation(argv=("docker",))) == 137

    @patch("dockexec.exec.runner.subprocess.Popen")
    def test_given_keyboard_interrupt_when_waiting_then_child_not_killed(
        self, mock_popen: MagicMock
    ) -> None:
        """An interrupt keeps waiting and returns whatever the child exits with."""
        proc = mock_popen.return_value
        proc.wait.side_effect = [KeyboardInterrupt, KeyboardInterrupt, 130]

        assert run_invocation(ContainerInvocation(argv=("docker", "run"))) == 130
        assert proc.wait.call_count == 3
        proc.kill.assert_not_called()
        proc.terminate.assert_not_called()

    @pytest.mark.skipif(os.name != "posix", reason="requires POSIX process groups")
    def test_given_ctrl_c_to_process_group_when_running_then_child_exits_on_its_own(
        self, tmp_path: Path
    ) -> None:
        """Ctrl-C lets the child finish its own cleanup, and no traceback is printed."""
        # Given
        marker = tmp_path / "marker"
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))
        child = [sys.executable, "-c", _SLOW_INTERRUPT_CHILD, str(marker)]
        wrapper = subprocess.Popen(
            [sys.executable, "-c", _WRAPPER, *child],
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            start_new_session=True,
        )
        deadline = time.monotonic() + 20
        while not (tmp_path / "ready").exists():
            if wrapper.poll() is not None or time.monotonic() > deadline:
                wrapper.kill()
                pytest.fail(f"child never became ready: {wrapper.communicate()}")
            time.sleep(0.05)

        # When - the terminal delivers SIGINT to the whole foreground group
        os.killpg(wrapper.pid, signal.SIGINT)
        _, stderr = wrapper.communicate(timeout=20)

        # Then
        assert wrapper.returncode == 130
        assert marker.read_text() == "cleaned up"
        assert "Traceback" not in stderr
        assert "KeyboardInterrupt" not in stderr

    def test_given_missing_runtime_when_run_then_launch_error(self, tmp_path: Path) -> None:
        """A runtime that cannot start is reported distinctly from a failing child."""
        missing = str(tmp_path / "no-such-runtime")

        with pytest.raises(RuntimeLaunchError) as exc_info:
            run_invocation(ContainerInvocation(argv=(missing, "run")))

        assert exc_info.value.code == ErrorCode.RUNTIME_NOT_STARTABLE
        assert exc_info.value.details["executable"] == missing

    @pytest.mark.skipif(os.name != "posix", reason="requires POSIX permissions")
    def test_given_non_executable_runtime_when_run_then_launch_error(self, tmp_path: Path) -> None:
        runtime = tmp_path / "docker"
        runtime.write_text("#!/bin/sh\n")
        runtime.chmod(0o644)

        with pytest.raises(RuntimeLaunchError):
            run_invocation(ContainerInvocation(argv=(str(runtime),)))


class _RecordingRunner:
    """Stand-in runner that records the invocation and checks the home dir."""

    def __init__(self, status: int = 0, error: Exception | None = None) -> None:
        self.status = status
        self.error = error
        self.invocations: list[ContainerInvocation] = []
        self.home: Path | None = None
        self.home_existed = False

    def __call__(self, invocation: ContainerInvocation) -> int:
        self.invocations.append(invocation)
        volume = next(a for a in invocation.argv if a.endswith(":/home:rw"))
        self.home = Path(volume.removeprefix("--volume=").removesuffix(":/home:rw"))
        self.home_existed = self.home.is_dir() and not any(self.home.iterdir())
        if self.error is not None:
            raise self.error
        return self.status


class TestRunInContainer:
    """run_in_container() tests."""

    @pytest.mark.parametrize("status", [0, 1, 3])
    def test_given_child_status_when_run_then_forwarded_and_home_removed(
        self, module_env: Any, status: int
    ) -> None:
        """The temp home exists while the child runs and is gone afterwards."""
        # Given
        runner = _RecordingRunner(status=status)
        parsed = parse_args(["/tmp/pkg.test", "-test.v"])

        # When
        result = run_in_container("img", parsed, module_env, DockexecConfig(), runner=runner)

        # Then
        assert result == status
        assert runner.home_existed
        assert runner.home is not None and not runner.home.exists()
        argv = runner.invocations[0].argv
        assert "--workdir=/start/cmd/blah" in argv
        assert argv[-2:] == ("img", "-test.v")

    def test_given_launch_failure_when_run_then_home_removed(self, adhoc_env: Any) -> None:
        runner = _RecordingRunner(error=RuntimeLaunchError.not_startable("docker", "not found"))

        with pytest.raises(RuntimeLaunchError):
            run_in_container(
                "img", parse_args(["/tmp/pkg.test"]), adhoc_env, DockexecConfig(), runner=runner
            )

        assert runner.home is not None and not runner.home.exists()

    def test_given_resolution_failure_when_run_then_nothing_started_and_home_removed(
        self, fake_env: Callable[..., Any], tmp_path: Path
    ) -> None:
        """Context failures abort before the runtime is touched."""
        # Given
        root = tmp_path / "mod"
        root.mkdir()
        env = fake_env(cwd=tmp_path, gomod=str(root / "go.mod"), module_dir=root)
        runner = _RecordingRunner()
        created: list[str] = []
        real_tempdir = tempfile.TemporaryDirectory

        def tracking_tempdir(*args: Any, **kwargs: Any) -> Any:
            tmp = real_tempdir(*args, **kwargs)
            created.append(tmp.name)
            return tmp

        # When
        with (
            patch("dockexec.exec.ops.tempfile.TemporaryDirectory", side_effect=tracking_tempdir),
            pytest.raises(ContextResolutionError),
        ):
            run_in_container(
                "img", parse_args(["/tmp/pkg.test"]), env, DockexecConfig(), runner=runner
            )

        # Then
        assert runner.invocations == []
        assert len(created) == 1
        assert not Path(created[0]).exists()

    def test_given_compose_when_run_then_compose_invocation(self, adhoc_env: Any) -> None:
        runner = _RecordingRunner()

        run_in_container(
            "app",
            parse_args(["/tmp/pkg.test"]),
            adhoc_env,
            DockexecConfig(),
            compose=True,
            runner=runner,
        )

        assert runner.invocations[0].argv[:4] == ("docker", "compose", "run", "--rm")
