"""Script interpreter: parses statements and dispatches them to commands."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TextIO

import structlog

from linecheck.config.schema import HarnessConfig
from linecheck.engine.commands import ScriptExit, get_command
from linecheck.engine.launcher import ServerSession, launch_server
from linecheck.engine.macros import expand
from linecheck.engine.transport import ProtocolTransport
from linecheck.engine.variables import RESULT_NAME, VariableStore
from linecheck.errors import ProtocolError, ScriptSyntaxError

log = structlog.get_logger()

WHITESPACE = " \t"
COMMENT_CHAR = "#"

Connector = Callable[[str], ServerSession]


@dataclass(frozen=True)
class Statement:
    """One parsed script line: ``[target =] command [argument]``.

    ``remainder`` is everything after the ``=`` (or the whole line when there
    is no target); it becomes the literal value when ``command`` is unknown.
    """

    target: str | None
    command: str
    argument: str
    remainder: str

    @property
    def is_unset(self) -> bool:
        return self.target is not None and not self.remainder


def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in WHITESPACE:
        pos += 1
    return pos


def _token_end(text: str, pos: int, stop: str = WHITESPACE) -> int:
    while pos < len(text) and text[pos] not in stop:
        pos += 1
    return pos


def is_blank_or_comment(line: str) -> bool:
    stripped = line.lstrip(WHITESPACE)
    return not stripped or stripped.startswith(COMMENT_CHAR)


def parse_statement(line: str) -> Statement:
    """Split an expanded, non-empty script line into its parts."""
    line = line.strip(WHITESPACE)
    pos = _token_end(line, 0, WHITESPACE + "=")
    head = line[:pos]

    target = None
    value_start = 0
    if pos < len(line) and line[pos] == "=":
        target, value_start = head, pos + 1
    elif pos < len(line):
        after = _skip_ws(line, pos)
        if after < len(line) and line[after] == "=":
            target, value_start = head, after + 1

    if not head:
        raise ScriptSyntaxError("syntax error")

    if target is None:
        return Statement(None, head, line[_skip_ws(line, pos):], line)

    remainder = line[_skip_ws(line, value_start):]
    cmd_end = _token_end(remainder, 0)
    return Statement(
        target,
        remainder[:cmd_end],
        remainder[_skip_ws(remainder, cmd_end):],
        remainder,
    )


class Interpreter:
    """Runs script lines against the variable store and the current server session."""

    def __init__(
        self,
        config: HarnessConfig | None = None,
        out: TextIO | None = None,
        err: TextIO | None = None,
        connector: Connector | None = None,
        prog_name: str = "linecheck",
    ) -> None:
        self.config = config or HarnessConfig()
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        self.prog_name = prog_name
        self._connector = connector or self._launch
        self.session: ServerSession | None = None

        self.variables = VariableStore()
        self.variables.set(RESULT_NAME, "1")
        for name, value in self.config.defines.items():
            self.variables.set(name, value)

    def __enter__(self) -> Interpreter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- command context --

    def report(self, message: str) -> None:
        """Write a non-fatal diagnostic to the error stream."""
        self.out.flush()
        self.err.write(f"{self.prog_name}: {message}\n")
        self.err.flush()

    def require_transport(self) -> ProtocolTransport:
        if self.session is None:
            raise ProtocolError("no server connection")
        return self.session.transport

    def connect(self, program: str | None) -> None:
        program = program or self.config.server_path
        if self.session is not None:
            self.session.close()
            self.session = None
        self.session = self._connector(program)

    def _launch(self, program: str) -> ServerSession:
        return launch_server(
            program,
            self.config.server_args,
            max_line_length=self.config.max_line_length,
            read_limit=self.config.read_limit,
        )

    # -- execution --

    def execute_line(self, line: str) -> int | None:
        """Execute one script line.

        Returns the exit code when the script has to stop, otherwise None.
        """
        if is_blank_or_comment(line):
            return None
        line = expand(line, self.variables.get)
        if is_blank_or_comment(line):
            return None

        stmt = parse_statement(line)
        if stmt.is_unset:
            self.variables.unset(stmt.target)
            return None

        command = get_command(stmt.command)
        if command is None:
            if stmt.target is None:
                raise ScriptSyntaxError(f"invalid statement `{stmt.command}'")
            self.variables.set(stmt.target, stmt.remainder)
            return None

        log.debug("executing", command=command.name, argument=stmt.argument)
        args = command.parse_args(stmt.argument)
        try:
            result = command.execute(self, args)
        except ScriptExit as e:
            log.debug("script exit", command=command.name, code=e.code)
            return e.code
        if result is not None:
            self.variables.set(stmt.target or RESULT_NAME, result)
        return None

    def run(self, lines: Iterable[str]) -> int:
        """Execute a script line by line and return the process exit code."""
        for raw in lines:
            if not raw.endswith("\n"):
                raise ScriptSyntaxError("incomplete script line")
            code = self.execute_line(raw[:-1])
            self.out.flush()
            if code is not None:
                return code
        return 0

    def close(self) -> None:
        """Drop the server session and release every handle still held."""
        if self.session is not None:
            self.session.close()
            self.session = None
        self.variables.close()
