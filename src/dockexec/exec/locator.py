"""Split an exec-wrapper argument list around the compiled test binary.

`go test -exec='dockexec image -m 512m'` runs
``dockexec image -m 512m /tmp/go-build123/b001/pkg.test -test.v``, with no
delimiter between runtime flags and the binary. The binary is recognised by
its name alone, and the first matching argument wins. A runtime flag value
that itself looks like a test binary would be taken as the binary; that is
an accepted limitation of the heuristic.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from dockexec.core.errors import BinaryNotFoundError

# pkg.test from `go test`, or $WORK/b001/exe/main from `go run`.
_BINARY_RE = re.compile(r"(?:\.test|[/\\]exe[/\\]\w+(?:\.\w+)?)(?:\.exe)?$")


@dataclass(frozen=True)
class ParsedArguments:
    """Arguments split around the test binary."""

    runtime_flags: tuple[str, ...]
    binary_path: str
    forwarded_flags: tuple[str, ...]


def is_test_binary(arg: str) -> bool:
    """Report whether a single argument names a compiled test binary."""
    if not arg or arg.startswith("-"):
        return False
    return _BINARY_RE.search(arg) is not None


def locate_binary(args: Sequence[str]) -> int:
    """Return the index of the first argument naming a test binary.

    Raises:
        BinaryNotFoundError: If no argument qualifies.
    """
    for i, arg in enumerate(args):
        if is_test_binary(arg):
            return i
    raise BinaryNotFoundError.from_args(args)


def parse_args(args: Sequence[str]) -> ParsedArguments:
    """Split the arguments following the target into their three parts."""
    i = locate_binary(args)
    return ParsedArguments(
        runtime_flags=tuple(args[:i]),
        binary_path=args[i],
        forwarded_flags=tuple(args[i + 1 :]),
    )
