"""Macro expansion of script lines.

``$name`` is replaced by the value of variable ``name``; the name runs up to
the next space, tab or ``$``. ``$$`` stands for a literal dollar sign.
Undefined variables expand to the empty string. Expansion is a single pass:
substituted text is never scanned again.
"""

from __future__ import annotations

from collections.abc import Callable

SIGIL = "$"
NAME_TERMINATORS = frozenset({" ", "\t", SIGIL})

Lookup = Callable[[str], "str | None"]


def has_macros(line: str) -> bool:
    return SIGIL in line


def expand(line: str, lookup: Lookup) -> str:
    """Return ``line`` with every macro reference replaced."""
    if not has_macros(line):
        return line

    parts: list[str] = []
    pos = 0
    n = len(line)
    while pos < n:
        start = line.find(SIGIL, pos)
        if start == -1:
            parts.append(line[pos:])
            break
        parts.append(line[pos:start])

        if line.startswith(SIGIL, start + 1):
            parts.append(SIGIL)
            pos = start + 2
            continue

        end = start + 1
        while end < n and line[end] not in NAME_TERMINATORS:
            end += 1
        value = lookup(line[start + 1 : end])
        if value:
            parts.append(value)
        pos = end
    return "".join(parts)
