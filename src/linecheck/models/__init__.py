from linecheck.models.defaults import (
    DEFAULT_READ_LIMIT,
    DEFAULT_SERVER_ARGS,
    DEFAULT_SERVER_PATH,
    MAX_LINE_LENGTH,
)
from linecheck.models.line import LineKind, ProtocolLine
from linecheck.models.variable import RESERVED_FDS, Handle, Value, VariableValue

__all__ = [
    "DEFAULT_READ_LIMIT",
    "DEFAULT_SERVER_ARGS",
    "DEFAULT_SERVER_PATH",
    "MAX_LINE_LENGTH",
    "RESERVED_FDS",
    "Handle",
    "LineKind",
    "ProtocolLine",
    "Value",
    "VariableValue",
]
