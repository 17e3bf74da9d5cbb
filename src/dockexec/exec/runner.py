"""Run the container runtime with the caller's stdio attached."""

from __future__ import annotations

import subprocess

from dockexec.core.errors import RuntimeLaunchError
from dockexec.core.logging import get_logger
from dockexec.exec.invocation import ContainerInvocation

log = get_logger("runner")


def run_invocation(invocation: ContainerInvocation) -> int:
    """Run *invocation* to completion and return its exit status.

    stdin, stdout and stderr are inherited, not captured. A child killed by a
    signal reports 128 + the signal number, as a shell would.

    Ctrl-C reaches the runtime through the terminal's process group, so an
    interrupt here only keeps waiting: the child decides how to exit and its
    status is returned like any other.

    Raises:
        RuntimeLaunchError: If the runtime executable could not be started.
    """
    log.debug("runtime_start", argv=list(invocation.argv))
    try:
        proc = subprocess.Popen(list(invocation.argv))
    except OSError as e:
        raise RuntimeLaunchError.not_startable(invocation.executable, str(e)) from e

    while True:
        try:
            returncode = proc.wait()
            break
        except KeyboardInterrupt:
            log.debug("runtime_interrupted", pid=proc.pid)

    code = returncode
    if code < 0:
        code = 128 - code
    log.debug("runtime_exit", returncode=returncode, exit_status=code)
    return code
