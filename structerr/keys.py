from __future__ import annotations

"""structerr/keys.py

Field-name normalization and value stringification for error records.

Every key stored on a StructuredError goes through `normalize`, and every
value through `stringify`, so downstream consumers can rely on flat
`lowercase_underscore` keys mapping to plain strings.
"""

from typing import Any


def _is_word_char(c: str) -> bool:
    return c.isalpha() or c.isnumeric()


def normalize(raw: str) -> str:
    """Return `raw` as underscore_divided lowercase words.

    Every character that is not a letter or number acts as a separator and
    runs of separators collapse, e.g. "Proxy-Addr!!" -> "proxy_addr".
    """
    parts: list[str] = []
    current: list[str] = []
    for c in raw:
        if _is_word_char(c):
            current.append(c)
        elif current:
            parts.append("".join(current))
            current = []
    if current:
        parts.append("".join(current))
    return "_".join(parts).lower()


def stringify(value: Any) -> str:
    # bool must be checked before int, since bool is an int subclass
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    return str(value)
