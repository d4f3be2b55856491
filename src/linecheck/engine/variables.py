"""Named script variables, some of which own file descriptors."""

from __future__ import annotations

import contextlib
import os

import structlog

from linecheck.models.variable import Handle, Value, VariableValue

log = structlog.get_logger()

RESULT_NAME = "?"


class VariableStore:
    """Mapping from variable name to a Value or Handle.

    Unset variables keep their entry with no value, so lookups on them
    return None just like lookups on names never assigned.
    """

    def __init__(self) -> None:
        self._vars: dict[str, VariableValue | None] = {}

    def set(self, name: str, value: VariableValue | str, is_handle: bool = False) -> None:
        """Assign ``value`` to ``name``, releasing any handle held before."""
        if isinstance(value, str):
            value = Handle.from_text(value) if is_handle else Value(value)
        self._release(name)
        self._vars[name] = value

    def get(self, name: str) -> str | None:
        value = self._vars.get(name)
        return value.text if value is not None else None

    def get_value(self, name: str) -> VariableValue | None:
        return self._vars.get(name)

    def unset(self, name: str) -> None:
        if name not in self._vars:
            return
        self._release(name)
        self._vars[name] = None

    def close(self) -> None:
        """Unset every variable, closing all handles still held."""
        for name in list(self._vars):
            self.unset(name)

    def __contains__(self, name: str) -> bool:
        return self._vars.get(name) is not None

    def _release(self, name: str) -> None:
        old = self._vars.get(name)
        if isinstance(old, Handle) and old.releasable:
            log.debug("closing handle", variable=name, fd=old.fd)
            with contextlib.suppress(OSError):
                os.close(old.fd)
