"""Line framing for the request/response protocol spoken by the server under test."""

from __future__ import annotations

import contextlib
from typing import BinaryIO

import structlog

from linecheck.errors import ExpectationError, ProtocolError
from linecheck.models.defaults import DEFAULT_READ_LIMIT, MAX_LINE_LENGTH
from linecheck.models.line import LineKind, ProtocolLine

log = structlog.get_logger()


def classify_line(text: str) -> ProtocolLine:
    """Classify a response line (terminator already stripped).

    The parsing is strict on purpose: only the exact prefixes the server is
    supposed to emit are accepted.
    """
    if text.startswith("OK") and (len(text) == 2 or text[2] == " "):
        return ProtocolLine(LineKind.SUCCESS, text[3:], text)
    if text.startswith("ERR") and (len(text) == 3 or text[3] == " "):
        return ProtocolLine(LineKind.FAILURE, text[4:], text)
    if text.startswith("S") and (len(text) == 1 or text[1] == " "):
        return ProtocolLine(LineKind.STATUS, text[2:], text)
    if text.startswith("D "):
        return ProtocolLine(LineKind.DATA, text[2:], text)
    if text == "END":
        return ProtocolLine(LineKind.END, "", text)
    raise ProtocolError(f"invalid line type ({text[:5]})")


class ProtocolTransport:
    """Reads classified lines from the server and writes request lines to it."""

    def __init__(
        self,
        reader: BinaryIO,
        writer: BinaryIO,
        max_line_length: int = MAX_LINE_LENGTH,
        read_limit: int = DEFAULT_READ_LIMIT,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self.max_line_length = max_line_length
        self.read_limit = read_limit
        self.last_line: ProtocolLine | None = None

    def read_line(self) -> ProtocolLine:
        """Block until one complete line arrives and return it classified."""
        try:
            data = self._reader.readline(self.read_limit)
        except OSError as e:
            raise ProtocolError(f"reading from server failed: {e}") from e

        if len(data) >= self.read_limit:
            raise ProtocolError("received line too large")
        if not data.endswith(b"\n"):
            raise ProtocolError("received incomplete line")

        text = data[:-1].decode("utf-8", errors="replace")
        line = classify_line(text)
        self.last_line = line
        log.debug("got line", line=text, kind=line.kind.name)
        return line

    def write_line(self, line: str) -> None:
        """Send one request line, appending the terminator if missing."""
        data = line.encode("utf-8")
        if data.endswith(b"\n"):
            data = data[:-1]
        if len(data) > self.max_line_length:
            raise ProtocolError("line too long for protocol")
        data += b"\n"

        log.debug("sending line", line=line.rstrip("\n"))
        while True:
            try:
                self._writer.write(data)
                self._writer.flush()
                return
            except InterruptedError:
                continue
            except OSError as e:
                raise ProtocolError(f"sending line to server failed: {e}") from e

    def expect(self, kind: LineKind) -> ProtocolLine:
        """Read until an OK or ERR line and require it to be ``kind``.

        Status and data lines in between are discarded.
        """
        log.debug("expecting", kind=kind.name)
        while True:
            line = self.read_line()
            if line.is_terminal:
                break
        if line.kind != kind:
            raise ExpectationError(f"expected {kind.value} but got `{line.raw}'")
        return line

    def close(self) -> None:
        for stream in (self._writer, self._reader):
            with contextlib.suppress(OSError):
                stream.close()
