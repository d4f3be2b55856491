import stat
import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest
import structlog

STUB_SERVER = """
import sys


def reply(*lines):
    for line in lines:
        sys.stdout.write(line + "\\n")
    sys.stdout.flush()


if "--server" not in sys.argv[1:]:
    reply("ERR 1 missing --server")
    sys.exit(2)

reply("OK ready")
for line in sys.stdin:
    cmd = line.rstrip("\\n")
    if cmd == "CHECK":
        reply("OK")
    elif cmd == "FAIL":
        reply("ERR 100 operation failed")
    elif cmd == "DATA":
        reply("S PROGRESS 1", "D hello", "END", "OK")
    elif cmd.startswith("ECHO "):
        reply("D " + cmd[5:], "OK")
    elif cmd == "GARBAGE":
        reply("FOO")
    elif cmd == "BYE":
        reply("OK closing")
        break
    else:
        reply("ERR 2 unknown command")
"""

RUDE_SERVER = """
import sys

sys.stdout.write("ERR 1 go away\\n")
sys.stdout.flush()
"""


def _write_executable(path: Path, body: str) -> Path:
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def make_server(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write an executable Python server script and return its path."""

    def _make(name: str, body: str) -> Path:
        return _write_executable(tmp_path / name, body)

    return _make


@pytest.fixture
def stub_server(make_server) -> Path:
    return make_server("stub-server", STUB_SERVER)


@pytest.fixture
def rude_server(make_server) -> Path:
    return make_server("rude-server", RUDE_SERVER)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Keep logging configured by one test from leaking into the next."""
    yield
    structlog.reset_defaults()
