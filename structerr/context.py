"""Ambient key/value context inherited by every new error record."""

from __future__ import annotations

import contextvars
import threading
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any, Protocol, runtime_checkable

from structerr.keys import normalize, stringify

_ContextState = tuple[tuple[str, str], ...]
_AMBIENT_CONTEXT: contextvars.ContextVar[_ContextState] = contextvars.ContextVar(
    "structerr_ambient_context", default=()
)

_GLOBALS_LOCK = threading.Lock()
_GLOBALS: dict[str, str] = {}


@runtime_checkable
class Contextual(Protocol):
    """Anything that can contribute its own fields to a context map."""

    def fill(self, target: MutableMapping[str, str]) -> None:
        ...


def get_context() -> dict[str, str]:
    """Return the current (task- or thread-local) context as a plain dict."""
    return dict(_AMBIENT_CONTEXT.get())


def set_context(**values: Any) -> contextvars.Token[_ContextState]:
    """Bind values in the active context and return a reset token.

    A value of None removes the key.
    """
    state = get_context()
    for key, value in values.items():
        name = normalize(key)
        if value is None:
            state.pop(name, None)
            continue
        state[name] = stringify(value)
    return _AMBIENT_CONTEXT.set(tuple(state.items()))


def reset_context(token: contextvars.Token[_ContextState]) -> None:
    _AMBIENT_CONTEXT.reset(token)


@contextmanager
def scope(**values: Any) -> Iterator[None]:
    """Temporarily bind context values for errors created in scope."""
    token = set_context(**values)
    try:
        yield
    finally:
        reset_context(token)


def put_global(key: str, value: Any) -> None:
    """Set a process-wide value, visible when globals are requested."""
    with _GLOBALS_LOCK:
        _GLOBALS[normalize(key)] = stringify(value)


def clear_globals() -> None:
    with _GLOBALS_LOCK:
        _GLOBALS.clear()


def as_map(obj: Contextual | None = None, include_globals: bool = False) -> dict[str, str]:
    """Snapshot the ambient context as a flat string mapping.

    Globals (when requested) are laid down first, then the scoped context,
    then whatever `obj` fills in, so more specific values win.
    """
    merged: dict[str, str] = {}
    if include_globals:
        with _GLOBALS_LOCK:
            merged.update(_GLOBALS)
    merged.update(_AMBIENT_CONTEXT.get())
    if obj is not None:
        obj.fill(merged)
    return merged
