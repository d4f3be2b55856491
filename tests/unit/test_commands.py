"""Tests for the script command table."""

import io
import os
from pathlib import Path

import pytest

from linecheck.engine.commands import (
    COMMANDS,
    CompareFilesCommand,
    ScriptExit,
    compare_files,
    eval_condition,
    get_command,
)
from linecheck.engine.transport import ProtocolTransport
from linecheck.errors import CommandError, ExpectationError
from linecheck.models.variable import Handle, Value


class FakeContext:
    """Minimal command context recording what commands do."""

    def __init__(self, incoming: bytes = b"") -> None:
        self.out = io.StringIO()
        self.reports: list[str] = []
        self.connected: list[str | None] = []
        self.sent = io.BytesIO()
        self.transport = ProtocolTransport(io.BytesIO(incoming), self.sent)

    def report(self, message: str) -> None:
        self.reports.append(message)

    def require_transport(self) -> ProtocolTransport:
        return self.transport

    def connect(self, program: str | None) -> None:
        self.connected.append(program)


def _run(name: str, ctx: FakeContext, text: str = ""):
    command = get_command(name)
    assert command is not None
    return command.execute(ctx, command.parse_args(text))


class TestEvalCondition:
    @pytest.mark.parametrize(
        "cond, expected",
        [
            ("", False),
            ("0", False),
            ("1", True),
            ("00", True),
            ("false", True),
            (" 0", True),
            ("!", True),
            ("!0", True),
            ("!1", False),
            ("!!0", False),
            ("!!1", True),
            ("!!!", True),
        ],
    )
    def test_evaluation(self, cond: str, expected: bool) -> None:
        assert eval_condition(cond) is expected


class TestTable:
    def test_all_commands_present(self) -> None:
        assert set(COMMANDS) == {
            "let",
            "echo",
            "send",
            "expect-ok",
            "expect-err",
            "openfile",
            "createfile",
            "pipeserver",
            "quit",
            "quit-if",
            "fail-if",
            "cmpfiles",
        }

    def test_unknown_command(self) -> None:
        assert get_command("frobnicate") is None

    def test_names_match_keys(self) -> None:
        for name, command in COMMANDS.items():
            assert command.name == name


class TestSimpleCommands:
    def test_let_returns_text(self) -> None:
        assert _run("let", FakeContext(), "some value") == Value("some value")

    def test_echo_prints(self) -> None:
        ctx = FakeContext()
        assert _run("echo", ctx, "hello there") is None
        assert ctx.out.getvalue() == "hello there\n"

    def test_send_writes_line(self) -> None:
        ctx = FakeContext()
        _run("send", ctx, "GETINFO version")
        assert ctx.sent.getvalue() == b"GETINFO version\n"

    def test_expect_ok(self) -> None:
        ctx = FakeContext(b"S STATUS\nOK\n")
        assert _run("expect-ok", ctx) is None

    def test_expect_ok_gets_err(self) -> None:
        ctx = FakeContext(b"ERR 1 bad\n")
        with pytest.raises(ExpectationError):
            _run("expect-ok", ctx)

    def test_expect_err(self) -> None:
        ctx = FakeContext(b"D data\nERR 1 bad\n")
        assert _run("expect-err", ctx) is None

    def test_expect_err_gets_ok(self) -> None:
        ctx = FakeContext(b"OK\n")
        with pytest.raises(ExpectationError):
            _run("expect-err", ctx)

    def test_pipeserver_default(self) -> None:
        ctx = FakeContext()
        _run("pipeserver", ctx, "")
        assert ctx.connected == [None]

    def test_pipeserver_path(self) -> None:
        ctx = FakeContext()
        _run("pipeserver", ctx, "/usr/bin/server")
        assert ctx.connected == ["/usr/bin/server"]


class TestExitCommands:
    def test_quit(self) -> None:
        with pytest.raises(ScriptExit) as exc_info:
            _run("quit", FakeContext())
        assert exc_info.value.code == 0

    @pytest.mark.parametrize("name, code", [("quit-if", 0), ("fail-if", 1)])
    def test_true_condition_exits(self, name: str, code: int) -> None:
        with pytest.raises(ScriptExit) as exc_info:
            _run(name, FakeContext(), "1")
        assert exc_info.value.code == code

    @pytest.mark.parametrize("name", ["quit-if", "fail-if"])
    def test_false_condition_continues(self, name: str) -> None:
        assert _run(name, FakeContext(), "0") is None
        assert _run(name, FakeContext(), "") is None


class TestFileCommands:
    def test_openfile(self, tmp_path: Path) -> None:
        path = tmp_path / "in.txt"
        path.write_text("content")
        result = _run("openfile", FakeContext(), str(path))
        assert isinstance(result, Handle)
        try:
            assert os.read(result.fd, 100) == b"content"
        finally:
            os.close(result.fd)

    def test_openfile_missing_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(CommandError, match="error opening"):
            _run("openfile", FakeContext(), str(tmp_path / "missing"))

    def test_createfile_truncates(self, tmp_path: Path) -> None:
        path = tmp_path / "out.txt"
        path.write_text("old content")
        result = _run("createfile", FakeContext(), str(path))
        assert isinstance(result, Handle)
        try:
            os.write(result.fd, b"new")
        finally:
            os.close(result.fd)
        assert path.read_bytes() == b"new"

    def test_createfile_in_missing_dir_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(CommandError, match="error creating"):
            _run("createfile", FakeContext(), str(tmp_path / "no" / "such" / "file"))


class TestCompareFiles:
    @pytest.fixture
    def pair(self, tmp_path: Path) -> tuple[Path, Path]:
        data = bytes(range(256)) * 19 + b"tail" * 34
        assert len(data) == 5000
        first = tmp_path / "first.bin"
        second = tmp_path / "second.bin"
        first.write_bytes(data)
        second.write_bytes(data)
        return first, second

    def test_identical_files(self, pair: tuple[Path, Path]) -> None:
        ctx = FakeContext()
        assert _run("cmpfiles", ctx, f"{pair[0]} {pair[1]}") == Value("1")
        assert ctx.reports == []

    def test_truncated_copy(self, pair: tuple[Path, Path]) -> None:
        first, second = pair
        second.write_bytes(second.read_bytes()[:-1])
        ctx = FakeContext()
        assert _run("cmpfiles", ctx, f"{first} {second}") == Value("0")
        assert ctx.reports == ["cmpfiles: mismatch"]

    def test_longer_second_file(self, pair: tuple[Path, Path]) -> None:
        first, second = pair
        second.write_bytes(second.read_bytes() + b"x" * 4096)
        assert _run("cmpfiles", FakeContext(), f"{first} {second}") == Value("0")

    def test_differing_byte(self, pair: tuple[Path, Path]) -> None:
        first, second = pair
        data = bytearray(second.read_bytes())
        data[3000] ^= 0xFF
        second.write_bytes(bytes(data))
        assert _run("cmpfiles", FakeContext(), f"{first}   {second}") == Value("0")

    def test_empty_files_match(self, tmp_path: Path) -> None:
        (tmp_path / "a").write_bytes(b"")
        (tmp_path / "b").write_bytes(b"")
        assert compare_files(str(tmp_path / "a"), str(tmp_path / "b"), print) is True

    def test_missing_first_is_reported(self, pair: tuple[Path, Path], tmp_path: Path) -> None:
        ctx = FakeContext()
        missing = tmp_path / "missing"
        assert _run("cmpfiles", ctx, f"{missing} {pair[1]}") == Value("0")
        assert len(ctx.reports) == 1
        assert ctx.reports[0].startswith(f"can't open `{missing}'")

    def test_missing_second_is_reported(self, pair: tuple[Path, Path], tmp_path: Path) -> None:
        ctx = FakeContext()
        missing = tmp_path / "missing"
        assert _run("cmpfiles", ctx, f"{pair[0]} {missing}") == Value("0")
        assert ctx.reports[0].startswith(f"can't open `{missing}'")

    @pytest.mark.parametrize("text", ["", "one", "one two three"])
    def test_syntax_error(self, text: str) -> None:
        with pytest.raises(CommandError, match="cmpfiles: syntax error"):
            CompareFilesCommand().parse_args(text)
