from __future__ import annotations

"""structerr/record.py

StructuredError: one failure occurrence as a flat map of string fields.

    err = structerr.new("dial failed").with_operation("connect")
    err.with_field("Proxy-Addr", addr).with_field("attempts", 3)
    ...
    structerr.wrap(exc).with_field("proxy_all", True).report()

Construction seeds the fields from the ambient context, classifies the
wrapped exception (if any) and installs the reserved keys:

- error: human readable description
- error_type: stable dotted type tag
- error_op: operation that failed, when known

Later calls to with_field/with_operation mutate the same instance and return
it. A record is not safe for concurrent mutation; callers sharing one across
threads must synchronize themselves.
"""

from types import MappingProxyType
from typing import Any, Mapping, MutableMapping, Optional

from structerr import context
from structerr.config import get_settings
from structerr.diagnostics.classifier import classify
from structerr.keys import normalize, stringify
from structerr.location import current_location_namespace

ERROR_KEY = "error"
ERROR_TYPE_KEY = "error_type"
ERROR_OP_KEY = "error_op"

DEFAULT_TYPE_TAG = "structerr.StructuredError"


class StructuredError(Exception):
    """A failure with normalized, reportable fields.

    Not meant to be created directly; use `new` or `wrap`.
    """

    def __init__(self, fields: dict[str, str], namespace: str = "structerr"):
        super().__init__(fields.get(ERROR_KEY, ""))
        self._data = fields
        self.namespace = namespace

    @property
    def fields(self) -> Mapping[str, str]:
        return MappingProxyType(self._data)

    def with_operation(self, op: str) -> StructuredError:
        """Record which operation failed. `op` is stored verbatim."""
        self._data[ERROR_OP_KEY] = op
        return self

    def with_field(self, key: str, value: Any) -> StructuredError:
        """Attach `value` under the normalized `key`, replacing any previous value."""
        self._data[normalize(key)] = stringify(value)
        return self

    def with_fields(self, values: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> StructuredError:
        for key, value in {**(values or {}), **kwargs}.items():
            self.with_field(key, value)
        return self

    def describe(self) -> str:
        return self._data[ERROR_KEY]

    def fill(self, target: MutableMapping[str, str]) -> None:
        """Copy every field into `target`, leaving its other keys in place."""
        target.update(self._data)

    def report(self) -> StructuredError:
        from structerr.reporting import report

        report(self)
        return self

    def __reduce__(self):
        # Exception would rebuild from args, which hold only the description
        return type(self), (dict(self._data), self.namespace)

    def __str__(self) -> str:
        return self.describe()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"


def _build(description: str, cause: Optional[BaseException], namespace: str) -> StructuredError:
    # ambient context goes in first so explicit fields always win
    data = context.as_map(include_globals=get_settings().include_global_context)

    type_tag = DEFAULT_TYPE_TAG
    if cause is not None:
        result = classify(cause)
        if result.op:
            data[ERROR_OP_KEY] = result.op
        type_tag = result.type_tag
        data.update((key, stringify(value)) for key, value in result.extra.items())
        if not description:
            description = result.description or str(cause)
    data[ERROR_KEY] = description
    data[ERROR_TYPE_KEY] = type_tag

    err = StructuredError(data, namespace)
    if cause is not None:
        err.__cause__ = cause
    return err


def new(description: str, cause: Optional[BaseException] = None) -> StructuredError:
    """Create a StructuredError described by `description`.

    When `cause` is given it is classified to fill in error_op, error_type and
    extra fields; an empty `description` then falls back to the classified
    description. A `cause` that is already a StructuredError is returned as is.
    """
    if isinstance(cause, StructuredError):
        return cause
    return _build(description, cause, current_location_namespace(1))


def wrap(exc: Optional[BaseException]) -> Optional[StructuredError]:
    """Wrap `exc` in a StructuredError.

    Returns None for None, so the result of a call that may or may not have
    failed can be wrapped unconditionally, and returns an existing
    StructuredError unchanged.
    """
    return wrap_skip_frames(exc, 1)


def wrap_skip_frames(exc: Optional[BaseException], skip: int) -> Optional[StructuredError]:
    """`wrap`, attributing the record to the caller `skip` frames further up."""
    if exc is None:
        return None
    if isinstance(exc, StructuredError):
        return exc
    return _build("", exc, current_location_namespace(skip + 1))
