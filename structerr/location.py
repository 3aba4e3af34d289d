"""Origin lookup for error records.

Only the module name of the creating frame is captured; it scopes the logger
used when the record is reported. Full stack traces are not recorded.
"""
from __future__ import annotations

import inspect

_FALLBACK_NAMESPACE = "structerr"


def current_location_namespace(skip_frames: int = 0) -> str:
    """Return the `__name__` of the module `skip_frames` levels above the caller."""
    frame = inspect.currentframe()
    try:
        # step over this function's own frame, then the requested number
        target = frame.f_back if frame is not None else None
        for _ in range(skip_frames):
            if target is None:
                break
            target = target.f_back
        if target is None:
            return _FALLBACK_NAMESPACE
        return target.f_globals.get("__name__") or _FALLBACK_NAMESPACE
    finally:
        del frame
