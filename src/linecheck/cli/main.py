import io
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from linecheck import __version__
from linecheck.config.loader import ConfigError, ConfigLoader
from linecheck.engine.interpreter import Interpreter
from linecheck.errors import HarnessError
from linecheck.logging_config import close_logging, configure_logging, get_logger

PROG_NAME = "linecheck"


def _parse_defines(defines: tuple[str, ...]) -> dict[str, str]:
    """Turn ``NAME=VALUE`` / ``NAME`` options into variables (bare names become "1")."""
    result: dict[str, str] = {}
    for item in defines:
        name, sep, value = item.partition("=")
        if not name:
            raise click.BadParameter(f"missing variable name in '{item}'", param_hint="-D")
        result[name] = value if sep else "1"
    return result


@click.command()
@click.version_option(version=__version__, prog_name=PROG_NAME)
@click.option("--verbose", "-v", is_flag=True, help="Log every line sent and received")
@click.option(
    "-D",
    "--define",
    "defines",
    multiple=True,
    metavar="NAME[=VALUE]",
    help="Set a script variable before the run",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML config file",
)
@click.option("--server", "server_path", default=None, help="Default server program for pipeserver")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Write logs to a file")
@click.argument("script", type=click.File("rb"), default="-")
def cli(
    verbose: bool,
    defines: tuple[str, ...],
    config_path: Path | None,
    server_path: str | None,
    log_file: Path | None,
    script,
) -> None:
    """Run a protocol check SCRIPT (stdin by default) against a line-oriented server."""
    err_console = Console(stderr=True, soft_wrap=True)

    try:
        config = ConfigLoader().load(
            config_path,
            verbose=verbose or None,
            server_path=server_path,
            defines=_parse_defines(defines),
        )
    except ConfigError as e:
        err_console.print(f"[red]Config error: {escape(str(e))}[/red]")
        raise SystemExit(1)

    configure_logging(level="DEBUG" if config.verbose else "WARNING", log_file=log_file)
    log = get_logger(script=getattr(script, "name", "<stdin>"))
    # Scripts are UTF-8; only LF ends a line, so a CR before it stays in the statement.
    lines = io.TextIOWrapper(script, encoding="utf-8", newline="\n")

    try:
        with Interpreter(config, prog_name=PROG_NAME) as interp:
            try:
                code = interp.run(lines)
            except HarnessError as e:
                interp.out.flush()
                err_console.print(f"[red]{PROG_NAME}: {escape(str(e))}[/red]")
                log.debug("run aborted", error=str(e))
                raise SystemExit(e.exit_code)
            except UnicodeDecodeError as e:
                interp.out.flush()
                err_console.print(f"[red]{PROG_NAME}: script is not valid UTF-8: {escape(str(e))}[/red]")
                raise SystemExit(1)
            except KeyboardInterrupt:
                err_console.print("\n[yellow]Interrupted.[/yellow]")
                raise SystemExit(1)

        log.debug("run finished", exit_code=code)
    finally:
        close_logging()
    raise SystemExit(code)
