from __future__ import annotations

"""structerr/diagnostics/classifier.py

Centralized failure classification.

`classify` looks at an arbitrary exception and returns a Classification:
the operation that failed (when known), a stable dotted type tag, a
human-readable description and a few extra fields worth reporting.

Matching runs in a fixed priority order and the first match wins:

1. network failures (structerr.net types, socket/urllib/connection errors),
   unwrapping one net.OpError layer for op and addresses first
2. runtime faults raised by the interpreter (TypeError, KeyError, ...),
   except json.dumps' unsupported-type TypeError
3. structural matchers: HTTP protocol, URL syntax, TLS/X.509, encoding and
   serialization, filesystem, process, numeric conversion, time parsing,
   then anything added with `register_matcher`
4. identity-keyed sentinel tables
5. the exception's own type and message

The classifier never raises. Typical type tags:
- net.DNSError, net.ParseError, socket.gaierror
- tls.HostnameError, tls.UnknownAuthorityError
- fs.PathError, fs.LinkError, fs.SyscallError
- json.decoder.JSONDecodeError, json.UnsupportedTypeError, json.UnsupportedValueError
- subprocess.CalledProcessError, convert.NumError, convert.TimeParseError
- io.EOF, os.ErrNotExist, http.ErrHeaderTooLong
"""

import binascii
import email.errors
import errno
import http.client
import json
import logging
import os
import re
import signal
import socket
import ssl
import subprocess
import urllib.error
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from pydantic import PydanticSchemaGenerationError, ValidationError
from pydantic_core import PydanticSerializationError, PydanticSerializationUnexpectedValue

from structerr import codec, fs, net, process, tls
from structerr.config import get_settings
from structerr.diagnostics.sentinels import PROTOCOL_SENTINELS, lookup_sentinel

logger = logging.getLogger(__name__)

NUM_ERROR_TAG = "convert.NumError"
TIME_PARSE_ERROR_TAG = "convert.TimeParseError"
JSON_UNSUPPORTED_TYPE_TAG = "json.UnsupportedTypeError"
JSON_UNSUPPORTED_VALUE_TAG = "json.UnsupportedValueError"

_PACKAGE_PREFIX = "structerr."


@dataclass(frozen=True)
class Classification:
    """Result of classifying one exception. Consumed immediately, never stored."""

    op: Optional[str]
    type_tag: str
    description: str
    extra: dict[str, str] = field(default_factory=dict)


# extractors receive an instance of the types they were registered for
Extractor = Callable[[Any], Optional[Classification]]
ExceptionTypes = Union[type, tuple[type, ...]]


def type_tag(cls: type) -> str:
    """Dotted `module.QualName` of `cls`, without this package's own prefix."""
    module = cls.__module__
    if module.startswith(_PACKAGE_PREFIX):
        module = module[len(_PACKAGE_PREFIX) :]
    return f"{module}.{cls.__qualname__}"


def _message(exc: BaseException) -> str:
    if isinstance(exc, KeyError) and len(exc.args) == 1:
        return str(exc.args[0])
    try:
        return str(exc)
    except Exception:  # noqa: BLE001
        return ""


def _cause_message(err: BaseException) -> str:
    if isinstance(err, OSError) and err.strerror:
        return str(err.strerror)
    return _message(err)


def _first(*candidates: object) -> str:
    for candidate in candidates:
        if candidate:
            return str(candidate)
    return ""


def _own(exc: BaseException, **extra: str) -> Classification:
    return Classification(None, type_tag(type(exc)), _message(exc), dict(extra))


def _errno_name(code: int) -> str:
    return errno.errorcode.get(code, str(code))


# ---- Network ----

_NETWORK_TYPES: tuple[type, ...] = (
    net.NetError,
    socket.gaierror,
    socket.herror,
    ConnectionError,
    TimeoutError,
    urllib.error.URLError,
)


def _dns_native(exc: OSError) -> Classification:
    return Classification(None, type_tag(type(exc)), _first(exc.strerror, _message(exc)))


def _url_op(exc: net.URLError) -> Classification:
    desc = _first(_cause_message(exc.err), _message(exc))
    return Classification(exc.op or None, type_tag(net.URLError), desc, {"url": exc.url})


def _http_status(exc: urllib.error.HTTPError) -> Classification:
    extra = {"status_code": str(exc.code)}
    url = getattr(exc, "url", None) or exc.filename
    if url:
        extra["url"] = str(url)
    return Classification(None, type_tag(type(exc)), _first(exc.reason, _message(exc)), extra)


def _urllib(exc: urllib.error.URLError) -> Classification:
    reason = exc.reason
    if isinstance(reason, OSError):
        desc = _first(reason.strerror, _message(reason))
    else:
        desc = _first(reason, _message(exc))
    return Classification(None, type_tag(type(exc)), desc)


def _os_numeric(exc: OSError) -> Optional[Classification]:
    if not isinstance(exc.errno, int):
        return None
    return Classification(
        None,
        type_tag(type(exc)),
        _first(exc.strerror, _message(exc)),
        {"errno": _errno_name(exc.errno)},
    )


_NETWORK_MATCHERS: list[tuple[ExceptionTypes, Extractor]] = [
    (net.AddrError, lambda e: Classification(None, type_tag(net.AddrError), e.err, {"addr": e.addr})),
    (
        net.DNSError,
        lambda e: Classification(
            None,
            type_tag(net.DNSError),
            e.err,
            {"domain": e.name, **({"dns_server": e.server} if e.server else {})},
        ),
    ),
    ((socket.gaierror, socket.herror), _dns_native),
    (net.InvalidAddrError, lambda e: _own(e)),
    (net.ParseError, lambda e: Classification(None, type_tag(net.ParseError), "invalid " + e.type, {"text_to_parse": e.text})),
    (net.UnknownNetworkError, lambda e: Classification(None, type_tag(net.UnknownNetworkError), "unknown network")),
    (net.URLError, _url_op),
    (urllib.error.HTTPError, _http_status),
    (urllib.error.URLError, _urllib),
    (OSError, _os_numeric),
]


def _classify_network(exc: BaseException) -> Classification:
    op: Optional[str] = None
    extra: dict[str, str] = {}
    if isinstance(exc, net.OpError):
        op = exc.op or None
        if exc.source is not None:
            extra["local_addr"] = str(exc.source)
        if exc.addr is not None:
            extra["remote_addr"] = str(exc.addr)
        if exc.net:
            extra["network"] = exc.net
        exc = exc.err

    inner = _match(_NETWORK_MATCHERS, exc) or _own(exc)
    return Classification(inner.op or op, inner.type_tag, inner.description, {**extra, **inner.extra})


# ---- Runtime ----

_RUNTIME_TYPES: tuple[type, ...] = (
    TypeError,
    AttributeError,
    LookupError,
    ArithmeticError,
    RecursionError,
    NameError,
    AssertionError,
)


def _is_runtime(exc: BaseException) -> bool:
    # library subclasses (e.g. pydantic's TypeError family) carry more detail
    return isinstance(exc, _RUNTIME_TYPES) and type(exc).__module__ == "builtins"


# ---- Protocol / URL syntax ----


def _http_protocol(exc: BaseException) -> Classification:
    tag = PROTOCOL_SENTINELS.get(type(exc), type_tag(http.client.HTTPException))
    return Classification(None, tag, _first(_message(exc), type(exc).__name__))


# ---- TLS / X.509 ----

_QUOTED = re.compile(r"'([^']*)'")


def _record_header(exc: tls.RecordHeaderError) -> Classification:
    return Classification(
        None, type_tag(tls.RecordHeaderError), exc.msg, {"header": exc.record_header.hex()}
    )


def _x509(exc: BaseException) -> Classification:
    if isinstance(exc, tls.HostnameError):
        return _own(exc, host=exc.host)
    return _own(exc)


def _ssl_cert(exc: BaseException) -> Classification:
    code = getattr(exc, "verify_code", None)
    desc = _first(getattr(exc, "verify_message", None), _message(exc))
    extra: dict[str, str] = {}
    kind = tls.VERIFY_CODE_KINDS.get(code) if isinstance(code, int) else None
    if kind is None:
        kind = tls.CertificateInvalidError
        if code is not None:
            extra["verify_code"] = str(code)
    if kind is tls.HostnameError:
        match = _QUOTED.search(desc)
        if match:
            extra["host"] = match.group(1)
    return Classification(None, type_tag(kind), desc, extra)


def _ssl(exc: ssl.SSLError) -> Classification:
    extra: dict[str, str] = {}
    if getattr(exc, "reason", None):
        extra["reason"] = str(exc.reason)
    if getattr(exc, "library", None):
        extra["library"] = str(exc.library)
    return Classification(None, type_tag(type(exc)), _first(exc.strerror, _message(exc)), extra)


# ---- Encoding / serialization ----


def _unicode(exc: Union[UnicodeDecodeError, UnicodeEncodeError]) -> Classification:
    desc = _message(exc)
    if isinstance(exc, UnicodeDecodeError) and exc.encoding.replace("-", "").lower() == "utf8":
        desc = "invalid UTF-8 in string"
    return Classification(
        None,
        type_tag(type(exc)),
        desc,
        {"encoding": exc.encoding, "position": str(exc.start)},
    )


def _json_syntax(exc: json.JSONDecodeError) -> Classification:
    return Classification(
        None,
        type_tag(json.JSONDecodeError),
        exc.msg,
        {"line": str(exc.lineno), "column": str(exc.colno)},
    )


_JSON_UNSUPPORTED_TYPE = re.compile(r"^Object of type (\w+) is not JSON serializable")
_JSON_UNSUPPORTED_VALUE = re.compile(
    r"^(Out of range float values are not JSON compliant|Circular reference detected)"
)


def _json_encode(exc: BaseException) -> Optional[Classification]:
    # json.dumps raises plain TypeError/ValueError
    if type(exc) not in (TypeError, ValueError):
        return None
    desc = _message(exc)
    match = _JSON_UNSUPPORTED_TYPE.match(desc)
    if match:
        return Classification(None, JSON_UNSUPPORTED_TYPE_TAG, desc, {"type": match.group(1)})
    if _JSON_UNSUPPORTED_VALUE.match(desc):
        return Classification(None, JSON_UNSUPPORTED_VALUE_TAG, desc)
    return None


def _validation(exc: ValidationError) -> Classification:
    return Classification(
        None,
        "pydantic.ValidationError",
        _message(exc),
        {"model": exc.title, "error_count": str(exc.error_count())},
    )


def _tagged(tag: str) -> Extractor:
    return lambda e: Classification(None, tag, _message(e))


# ---- Filesystem ----


def _link(exc: fs.LinkError) -> Classification:
    return Classification(
        exc.op or None,
        type_tag(fs.LinkError),
        _message(exc),
        {"old_path": exc.old, "new_path": exc.new},
    )


def _path(exc: fs.PathError) -> Classification:
    return Classification(exc.op or None, type_tag(fs.PathError), _cause_message(exc.err), {"path": exc.path})


def _syscall(exc: fs.SyscallError) -> Classification:
    return Classification(exc.syscall or None, type_tag(fs.SyscallError), _cause_message(exc.err))


def _path_text(path: object) -> str:
    if isinstance(path, (str, bytes, os.PathLike)):
        return os.fsdecode(path)
    return str(path)


def _native_os(exc: OSError) -> Optional[Classification]:
    extra: dict[str, str] = {}
    if isinstance(exc.errno, int):
        extra["errno"] = _errno_name(exc.errno)
    desc = _first(exc.strerror, _message(exc))
    if exc.filename2 is not None:
        extra["old_path"] = _path_text(exc.filename)
        extra["new_path"] = _path_text(exc.filename2)
        return Classification(None, type_tag(fs.LinkError), desc, extra)
    if exc.filename is not None:
        extra["path"] = _path_text(exc.filename)
        return Classification(None, type_tag(fs.PathError), desc, extra)
    if isinstance(exc.errno, int):
        return Classification(None, type_tag(fs.SyscallError), desc, extra)
    return None


# ---- Processes ----


def _exec(exc: process.ExecError) -> Classification:
    return Classification(None, type_tag(process.ExecError), _cause_message(exc.err), {"name": exc.name})


def _truncate(output: object, limit: int) -> str:
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")
    text = str(output)
    if limit >= 0 and len(text) > limit:
        return text[:limit]
    return text


def _exit_status(returncode: int) -> str:
    if returncode < 0:
        try:
            return "signal: " + signal.Signals(-returncode).name
        except ValueError:
            return f"signal: {-returncode}"
    return f"exit status {returncode}"


def _exit(exc: subprocess.CalledProcessError) -> Classification:
    extra = {"exit_code": str(exc.returncode)}
    if exc.stderr is not None:
        extra["stderr"] = _truncate(exc.stderr, get_settings().stderr_limit)
    return Classification(None, type_tag(subprocess.CalledProcessError), _exit_status(exc.returncode), extra)


def _process_timeout(exc: subprocess.TimeoutExpired) -> Classification:
    return _own(exc, timeout=str(exc.timeout))


# ---- Conversions ----

_NUM_PATTERNS = (
    re.compile(r"^invalid literal for (\w+)\(\)"),
    re.compile(r"^could not convert string to (\w+)"),
    re.compile(r"^(\w+)\(\) arg is a malformed string"),
)

_TIME_PATTERNS = (
    re.compile(r"^time data (?P<value>.+?) does not match format (?P<layout>.+)$", re.S),
    re.compile(r"^unconverted data remains: (?P<value>.*)$", re.S),
    re.compile(r"^Invalid isoformat string: (?P<value>.*)$", re.S),
)


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        return text[1:-1]
    return text


def _num(exc: BaseException) -> Optional[Classification]:
    if type(exc) is not ValueError:
        return None
    desc = _message(exc)
    for pattern in _NUM_PATTERNS:
        match = pattern.match(desc)
        if match:
            return Classification(None, NUM_ERROR_TAG, desc, {"function": match.group(1)})
    return None


def _time_parse(exc: BaseException) -> Optional[Classification]:
    if type(exc) is not ValueError:
        return None
    desc = _message(exc)
    for pattern in _TIME_PATTERNS:
        match = pattern.match(desc)
        if match:
            extra = {key: _unquote(value) for key, value in match.groupdict().items()}
            return Classification(None, TIME_PARSE_ERROR_TAG, desc, extra)
    return None


_STRUCTURAL_MATCHERS: list[tuple[ExceptionTypes, Extractor]] = [
    (http.client.HTTPException, _http_protocol),
    (email.errors.MessageError, lambda e: _own(e)),
    (net.EscapeError, lambda e: Classification(None, type_tag(net.EscapeError), "invalid URL escape")),
    (net.InvalidHostError, lambda e: Classification(None, type_tag(net.InvalidHostError), "invalid character in host name")),
    (tls.RecordHeaderError, _record_header),
    (tls.X509Error, _x509),
    (ssl.SSLCertVerificationError, _ssl_cert),
    (ssl.SSLError, _ssl),
    (codec.InvalidByteError, lambda e: Classification(None, type_tag(codec.InvalidByteError), "invalid byte", {"byte": e.byte})),
    ((UnicodeDecodeError, UnicodeEncodeError), _unicode),
    (json.JSONDecodeError, _json_syntax),
    (ValueError, _json_encode),
    (binascii.Error, lambda e: _own(e)),
    (PydanticSerializationUnexpectedValue, _tagged("pydantic_core.PydanticSerializationUnexpectedValue")),
    (PydanticSerializationError, _tagged("pydantic_core.PydanticSerializationError")),
    (ValidationError, _validation),
    (PydanticSchemaGenerationError, _tagged("pydantic.PydanticSchemaGenerationError")),
    (fs.LinkError, _link),
    (fs.PathError, _path),
    (fs.SyscallError, _syscall),
    (OSError, _native_os),
    (process.ExecError, _exec),
    (subprocess.CalledProcessError, _exit),
    (subprocess.TimeoutExpired, _process_timeout),
    (ValueError, _num),
    (ValueError, _time_parse),
]

_EXTENSION_MATCHERS: list[tuple[ExceptionTypes, Extractor]] = []


def register_matcher(types: ExceptionTypes, extractor: Extractor) -> None:
    """Add a matcher tried after the built-in structural ones.

    `extractor` receives the exception and returns a Classification, or None
    to let later matchers have a go. Register at import time; the matcher
    list is not guarded for concurrent registration.
    """
    _EXTENSION_MATCHERS.append((types, extractor))


def _match(
    matchers: list[tuple[ExceptionTypes, Extractor]], exc: BaseException
) -> Optional[Classification]:
    for types, extract in matchers:
        if isinstance(exc, types):
            result = extract(exc)
            if result is not None:
                return result
    return None


def _classify(exc: BaseException) -> Classification:
    if isinstance(exc, _NETWORK_TYPES):
        return _classify_network(exc)
    if _is_runtime(exc):
        return _json_encode(exc) or _own(exc)

    result = _match(_STRUCTURAL_MATCHERS, exc) or _match(_EXTENSION_MATCHERS, exc)
    if result is not None:
        return result

    tag = lookup_sentinel(exc)
    if tag is not None:
        return Classification(None, tag, _first(_message(exc), type(exc).__name__))
    return _own(exc)


def classify(exc: BaseException) -> Classification:
    """Classify `exc`. Always returns; unknown failures get their own type and message."""
    try:
        return _classify(exc)
    except Exception:  # noqa: BLE001
        logger.debug("Classification of %s failed", type(exc).__name__, exc_info=True)
        return _own(exc)
