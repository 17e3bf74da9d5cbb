"""dockexec CLI - run Go test binaries inside a container."""

import click
import structlog

from dockexec import __version__
from dockexec.config import load_config
from dockexec.core.errors import DockexecError, UsageError
from dockexec.core.logging import configure_logging, get_logger
from dockexec.exec.environment import GoToolchainEnvironment
from dockexec.exec.locator import parse_args
from dockexec.exec.ops import run_in_container

log = get_logger("cli")


@click.command(
    context_settings={
        # Everything after TARGET belongs to the runtime or the test binary.
        "allow_interspersed_args": False,
        "help_option_names": ["-h", "--help"],
    }
)
@click.version_option(version=__version__, prog_name="dockexec")
@click.option("--compose", is_flag=True, help="Use 'docker compose run' with a service name.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging on stderr")
@click.argument("target")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def cli(
    ctx: click.Context, compose: bool, verbose: bool, target: str, args: tuple[str, ...]
) -> None:
    """Run a Go test binary inside a container.

    TARGET is an image, or a compose service with --compose. Flags between
    TARGET and the test binary go to 'docker run'; flags after the binary go
    to the binary itself.

    \b
    Examples:
        go test -exec='dockexec golang:1.22' -run TestFoo -v
        go test -exec='dockexec postgres:16 -m 512m' ./...
        go test -exec='dockexec --compose app' ./cmd/app
    """
    try:
        config = load_config()
    except DockexecError as e:
        click.echo(f"dockexec: {e.message}", err=True)
        raise SystemExit(e.exit_status) from e

    logging_config = config.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(target=target, compose=compose)

    if not args:
        raise click.UsageError(UsageError.too_few_args([target]).message, ctx=ctx)
    try:
        parsed = parse_args(args)
    except UsageError as e:
        raise click.UsageError(e.message, ctx=ctx) from e

    env = GoToolchainEnvironment(config.toolchain.go)
    try:
        status = run_in_container(target, parsed, env, config, compose=compose)
    except DockexecError as e:
        log.debug("invocation_failed", error=e.error_name, details=e.details)
        click.echo(f"dockexec: {e.message}", err=True)
        raise SystemExit(e.exit_status) from e

    # The child's status is forwarded as is; it reports its own failures.
    raise SystemExit(status)


if __name__ == "__main__":
    cli()
