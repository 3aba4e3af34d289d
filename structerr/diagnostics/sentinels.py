from __future__ import annotations

"""structerr/diagnostics/sentinels.py

Identity-keyed tags for failures that carry no structured payload.

Keys are exception classes whose instances carry nothing worth extracting.
Each such condition has its own payload-less class and is raised as a fresh
instance, so the class stands in for the singleton value. Lookup is by exact
class, never by isinstance, so subclasses keep their own tags.

Both tables are frozen at import time and safe to read from any thread.
"""

import binascii
import http.client
import io
from types import MappingProxyType
from typing import Mapping

from structerr import codec, process, tls

PROTOCOL_SENTINELS: Mapping[type, str] = MappingProxyType(
    {
        http.client.LineTooLong: "http.ErrHeaderTooLong",
        http.client.IncompleteRead: "http.ErrShortBody",
        http.client.BadStatusLine: "http.ErrBadStatusLine",
        http.client.UnknownProtocol: "http.ErrNotSupported",
        http.client.UnknownTransferEncoding: "http.ErrUnknownTransferEncoding",
        http.client.UnimplementedFileMode: "http.ErrUnimplementedFileMode",
        http.client.InvalidURL: "http.ErrInvalidURL",
        http.client.NotConnected: "http.ErrNotConnected",
        http.client.ImproperConnectionState: "http.ErrImproperConnectionState",
        http.client.CannotSendRequest: "http.ErrCannotSendRequest",
        http.client.CannotSendHeader: "http.ErrCannotSendHeader",
        http.client.ResponseNotReady: "http.ErrResponseNotReady",
    }
)

MISC_SENTINELS: Mapping[type, str] = MappingProxyType(
    {
        # failures raised by this package
        process.ExecutableNotFoundError: "process.ErrNotFound",
        tls.IncorrectPasswordError: "tls.ErrIncorrectPassword",
        tls.UnsupportedAlgorithmError: "tls.ErrUnsupportedAlgorithm",
        codec.HexLengthError: "codec.ErrLength",
        # I/O
        EOFError: "io.EOF",
        BlockingIOError: "io.ErrWouldBlock",
        io.UnsupportedOperation: "io.ErrUnsupportedOperation",
        InterruptedError: "io.ErrInterrupted",
        # OS
        FileNotFoundError: "os.ErrNotExist",
        FileExistsError: "os.ErrExist",
        PermissionError: "os.ErrPermission",
        IsADirectoryError: "os.ErrIsDir",
        NotADirectoryError: "os.ErrNotDir",
        # process lookup
        ProcessLookupError: "process.ErrNoSuchProcess",
        ChildProcessError: "process.ErrNoChild",
        # encoding
        binascii.Incomplete: "codec.ErrIncomplete",
    }
)


def lookup_sentinel(exc: BaseException) -> str | None:
    """Return the canonical tag for `exc`, protocol table first, else None."""
    for table in (PROTOCOL_SENTINELS, MISC_SENTINELS):
        tag = table.get(type(exc))
        if tag is not None:
            return tag
    return None
