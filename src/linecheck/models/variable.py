from dataclasses import dataclass

# Standard stream descriptors (and the "no descriptor" marker) are never closed.
RESERVED_FDS = frozenset({-1, 0, 1, 2})


@dataclass(frozen=True)
class Value:
    """Plain string value."""

    text: str


@dataclass(frozen=True)
class Handle:
    """An OS file descriptor owned by the variable holding it.

    ``text`` is what scripts see; ``fd`` is None when the text is not a number,
    in which case there is nothing to close.
    """

    fd: int | None
    text: str = ""

    def __post_init__(self) -> None:
        if not self.text and self.fd is not None:
            object.__setattr__(self, "text", str(self.fd))

    @classmethod
    def from_text(cls, text: str) -> "Handle":
        try:
            fd = int(text)
        except ValueError:
            fd = None
        return cls(fd, text)

    @property
    def releasable(self) -> bool:
        return self.fd is not None and self.fd not in RESERVED_FDS


VariableValue = Value | Handle
