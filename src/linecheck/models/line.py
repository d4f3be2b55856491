from dataclasses import dataclass
from enum import StrEnum


class LineKind(StrEnum):
    SUCCESS = "OK"
    FAILURE = "ERR"
    STATUS = "S"
    DATA = "D"
    END = "END"


@dataclass(frozen=True)
class ProtocolLine:
    """One classified response line, terminator stripped."""

    kind: LineKind
    payload: str
    raw: str

    @property
    def is_terminal(self) -> bool:
        """True for the OK/ERR lines that end a server reply."""
        return self.kind in (LineKind.SUCCESS, LineKind.FAILURE)
