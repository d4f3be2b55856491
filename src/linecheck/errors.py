"""Fatal error types. Any of these aborts a script run with exit code 1."""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for errors that abort the whole run."""

    exit_code = 1


class ScriptSyntaxError(HarnessError):
    """Raised for a statement that cannot be parsed or dispatched."""


class ProtocolError(HarnessError):
    """Raised on a framing violation or an I/O failure on the server streams."""


class SessionError(ProtocolError):
    """Raised when the server cannot be started or does not greet us."""


class ExpectationError(HarnessError):
    """Raised when the server answers ERR where OK was expected, or vice versa."""


class CommandError(HarnessError):
    """Raised when a command cannot carry out its operation."""
