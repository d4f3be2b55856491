"""Starts the server under test and performs the greeting."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog

from linecheck.engine.transport import ProtocolTransport
from linecheck.errors import SessionError
from linecheck.models.defaults import DEFAULT_READ_LIMIT, DEFAULT_SERVER_ARGS, MAX_LINE_LENGTH
from linecheck.models.line import LineKind

log = structlog.get_logger()


@dataclass
class ServerSession:
    """A greeted connection to a running server process."""

    transport: ProtocolTransport
    process: subprocess.Popen | None = None

    def close(self, timeout: float = 5.0) -> None:
        """Close the pipes and reap the child."""
        self.transport.close()
        if self.process is None:
            return
        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            log.warning("server did not exit, killing", pid=self.process.pid)
            self.process.kill()
            self.process.wait()


def greet(transport: ProtocolTransport) -> None:
    """Read the server's first line and require it to be OK."""
    line = transport.read_line()
    if line.kind != LineKind.SUCCESS:
        raise SessionError("no greeting message")


def launch_server(
    program: str,
    server_args: Sequence[str] = DEFAULT_SERVER_ARGS,
    max_line_length: int = MAX_LINE_LENGTH,
    read_limit: int = DEFAULT_READ_LIMIT,
) -> ServerSession:
    """Start ``program`` with its stdin/stdout wired to us and wait for the greeting."""
    argv = [Path(program).name, *server_args]
    # A bare name means a file in the working directory, never a PATH lookup.
    executable = program if os.sep in program else os.path.join(os.curdir, program)
    try:
        process = subprocess.Popen(
            argv,
            executable=executable,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
        )
    except OSError as e:
        raise SessionError(f"exec failed for `{program}': {e}") from e

    log.info("server started", program=program, pid=process.pid)
    transport = ProtocolTransport(
        process.stdout,
        process.stdin,
        max_line_length=max_line_length,
        read_limit=read_limit,
    )
    session = ServerSession(transport=transport, process=process)
    try:
        greet(transport)
    except Exception:
        session.close(timeout=1.0)
        raise
    return session
