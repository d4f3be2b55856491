"""The fixed table of commands a script may use."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any, Protocol, TextIO

import structlog

from linecheck.engine.transport import ProtocolTransport
from linecheck.errors import CommandError
from linecheck.models.line import LineKind
from linecheck.models.variable import Handle, Value, VariableValue

log = structlog.get_logger()

COMPARE_CHUNK_SIZE = 2048


class ScriptExit(Exception):
    """Raised by a command to end the script with ``code``."""

    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"script exit {code}")


class CommandContext(Protocol):
    out: TextIO

    def report(self, message: str) -> None: ...
    def require_transport(self) -> ProtocolTransport: ...
    def connect(self, program: str | None) -> None: ...


class Command(Protocol):
    name: str

    def parse_args(self, text: str) -> Any: ...
    def execute(self, ctx: CommandContext, args: Any) -> VariableValue | None: ...


def eval_condition(cond: str) -> bool:
    """Evaluate a condition: false for "" or "0", each leading '!' negates."""
    stripped = cond.lstrip("!")
    negate = (len(cond) - len(stripped)) % 2 == 1
    value = stripped not in ("", "0")
    return value != negate


class _TextCommand:
    """Takes its argument text verbatim."""

    name = ""

    def parse_args(self, text: str) -> str:
        return text


class LetCommand(_TextCommand):
    name = "let"

    def execute(self, ctx: CommandContext, args: str) -> VariableValue | None:
        return Value(args)


class EchoCommand(_TextCommand):
    name = "echo"

    def execute(self, ctx: CommandContext, args: str) -> VariableValue | None:
        ctx.out.write(f"{args}\n")
        return None


class SendCommand(_TextCommand):
    name = "send"

    def execute(self, ctx: CommandContext, args: str) -> VariableValue | None:
        ctx.require_transport().write_line(args)
        return None


class ExpectCommand(_TextCommand):
    def __init__(self, name: str, kind: LineKind) -> None:
        self.name = name
        self.kind = kind

    def execute(self, ctx: CommandContext, args: str) -> VariableValue | None:
        ctx.require_transport().expect(self.kind)
        return None


class OpenFileCommand(_TextCommand):
    def __init__(self, name: str, flags: int, verb: str) -> None:
        self.name = name
        self.flags = flags
        self.verb = verb

    def execute(self, ctx: CommandContext, args: str) -> VariableValue | None:
        try:
            fd = os.open(args, self.flags, 0o666)
        except OSError as e:
            raise CommandError(f"error {self.verb} `{args}': {e.strerror}") from e
        log.debug("file opened", path=args, fd=fd)
        return Handle(fd)


class PipeServerCommand(_TextCommand):
    name = "pipeserver"

    def execute(self, ctx: CommandContext, args: str) -> VariableValue | None:
        ctx.connect(args or None)
        return None


class QuitCommand(_TextCommand):
    name = "quit"

    def execute(self, ctx: CommandContext, args: str) -> VariableValue | None:
        raise ScriptExit(0)


class ExitIfCommand(_TextCommand):
    """Ends the script with ``exit_code`` when the condition holds."""

    def __init__(self, name: str, exit_code: int) -> None:
        self.name = name
        self.exit_code = exit_code

    def execute(self, ctx: CommandContext, args: str) -> VariableValue | None:
        if eval_condition(args):
            raise ScriptExit(self.exit_code)
        return None


class CompareFilesCommand:
    name = "cmpfiles"

    def parse_args(self, text: str) -> tuple[str, str]:
        paths = text.split()
        if len(paths) != 2:
            raise CommandError("cmpfiles: syntax error")
        return paths[0], paths[1]

    def execute(self, ctx: CommandContext, args: tuple[str, str]) -> VariableValue | None:
        first, second = args
        return Value("1" if compare_files(first, second, ctx.report) else "0")


def compare_files(first: str, second: str, report: Callable[[str], None]) -> bool:
    """Compare two files byte for byte. Problems are reported, never raised."""
    try:
        fp1 = open(first, "rb")
    except OSError as e:
        report(f"can't open `{first}': {e.strerror}")
        return False
    with fp1:
        try:
            fp2 = open(second, "rb")
        except OSError as e:
            report(f"can't open `{second}': {e.strerror}")
            return False
        with fp2:
            try:
                while True:
                    chunk1 = fp1.read(COMPARE_CHUNK_SIZE)
                    chunk2 = fp2.read(COMPARE_CHUNK_SIZE)
                    if chunk1 != chunk2:
                        report("cmpfiles: mismatch")
                        return False
                    if not chunk1:
                        break
            except OSError as e:
                report(f"cmpfiles: read error: {e.strerror}")
                return False
    log.debug("files match", first=first, second=second)
    return True


COMMANDS: dict[str, Command] = {
    cmd.name: cmd
    for cmd in (
        LetCommand(),
        EchoCommand(),
        SendCommand(),
        ExpectCommand("expect-ok", LineKind.SUCCESS),
        ExpectCommand("expect-err", LineKind.FAILURE),
        OpenFileCommand("openfile", os.O_RDONLY, "opening"),
        OpenFileCommand("createfile", os.O_WRONLY | os.O_CREAT | os.O_TRUNC, "creating"),
        PipeServerCommand(),
        QuitCommand(),
        ExitIfCommand("quit-if", 0),
        ExitIfCommand("fail-if", 1),
        CompareFilesCommand(),
    )
}


def get_command(name: str) -> Command | None:
    return COMMANDS.get(name)
