from __future__ import annotations

"""structerr/net.py

Structured network failures.

The standard library reports most socket problems as bare OSError subclasses
with no record of the operation, the endpoints involved or the text that
failed to parse. These types carry that detail so the classifier can turn it
into record fields:

- NetError: base class exposing timeout()/temporary()
- OpError: wraps a failure with op, network kind and local/remote addresses
- AddrError, DNSError, InvalidAddrError, ParseError, UnknownNetworkError
- URLError: wraps a failure raised while performing a request on a URL
- EscapeError / InvalidHostError: URL syntax problems (not network failures)

`parse_ip`, `split_host_port` and `unescape` raise these types directly.
"""

import ipaddress
import re
from typing import Any
from urllib.parse import unquote


class NetError(Exception):
    """Base for failures with network-operation semantics."""

    def timeout(self) -> bool:
        return False

    def temporary(self) -> bool:
        return False


class OpError(NetError):
    """A failure raised while performing `op` (dial, read, write...) on a network."""

    def __init__(
        self,
        op: str,
        err: BaseException,
        *,
        net: str = "",
        source: Any = None,
        addr: Any = None,
    ):
        super().__init__(op, err)
        self.op = op
        self.net = net
        self.source = source
        self.addr = addr
        self.err = err

    def __str__(self) -> str:
        s = self.op
        if self.net:
            s += " " + self.net
        if self.source is not None:
            s += " " + str(self.source)
        if self.addr is not None:
            s += "->" if self.source is not None else " "
            s += str(self.addr)
        return f"{s}: {self.err}"

    def timeout(self) -> bool:
        if isinstance(self.err, NetError):
            return self.err.timeout()
        return isinstance(self.err, TimeoutError)

    def temporary(self) -> bool:
        if isinstance(self.err, NetError):
            return self.err.temporary()
        return isinstance(self.err, (TimeoutError, ConnectionResetError))


class AddrError(NetError):
    def __init__(self, err: str, addr: str = ""):
        super().__init__(err, addr)
        self.err = err
        self.addr = addr

    def __str__(self) -> str:
        if self.addr:
            return f"address {self.addr}: {self.err}"
        return self.err


class DNSError(NetError):
    """A name resolution failure for `name`, optionally against `server`."""

    def __init__(
        self,
        err: str,
        name: str,
        server: str = "",
        *,
        is_timeout: bool = False,
        is_temporary: bool = False,
    ):
        super().__init__(err, name, server)
        self.err = err
        self.name = name
        self.server = server
        self.is_timeout = is_timeout
        self.is_temporary = is_temporary

    def __str__(self) -> str:
        s = f"lookup {self.name}"
        if self.server:
            s += f" on {self.server}"
        return f"{s}: {self.err}"

    def timeout(self) -> bool:
        return self.is_timeout

    def temporary(self) -> bool:
        return self.is_timeout or self.is_temporary


class InvalidAddrError(NetError):
    pass


class ParseError(NetError):
    """`text` could not be parsed as a `type` (e.g. "IP address")."""

    def __init__(self, type: str, text: str):
        super().__init__(type, text)
        self.type = type
        self.text = text

    def __str__(self) -> str:
        return f"invalid {self.type}: {self.text}"


class UnknownNetworkError(NetError):
    def __init__(self, network: str):
        super().__init__(network)
        self.network = network

    def __str__(self) -> str:
        return f"unknown network {self.network}"


class URLError(NetError):
    """A failure raised by `op` (GET, POST...) against `url`."""

    def __init__(self, op: str, url: str, err: BaseException):
        super().__init__(op, url, err)
        self.op = op
        self.url = url
        self.err = err

    def __str__(self) -> str:
        return f'{self.op} "{self.url}": {self.err}'

    def timeout(self) -> bool:
        if isinstance(self.err, NetError):
            return self.err.timeout()
        return isinstance(self.err, TimeoutError)

    def temporary(self) -> bool:
        if isinstance(self.err, NetError):
            return self.err.temporary()
        return isinstance(self.err, TimeoutError)


class EscapeError(ValueError):
    def __init__(self, text: str):
        super().__init__(text)
        self.text = text

    def __str__(self) -> str:
        return f"invalid URL escape {self.text!r}"


class InvalidHostError(ValueError):
    def __init__(self, text: str):
        super().__init__(text)
        self.text = text

    def __str__(self) -> str:
        return f"invalid character {self.text!r} in host name"


def parse_ip(text: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        raise ParseError("IP address", text) from None


def split_host_port(hostport: str) -> tuple[str, str]:
    """Split "host:port" or "[v6host]:port" into its parts."""
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise AddrError("missing ']' in address", hostport)
        host, rest = hostport[1:end], hostport[end + 1 :]
        if not rest.startswith(":"):
            raise AddrError("missing port in address", hostport)
        return host, rest[1:]
    host, sep, port = hostport.rpartition(":")
    if not sep:
        raise AddrError("missing port in address", hostport)
    if ":" in host:
        raise AddrError("too many colons in address", hostport)
    return host, port


_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def unescape(text: str) -> str:
    """Strict percent-decoding: a malformed escape raises EscapeError."""
    bad = _ESCAPE.search(text)
    if bad is not None:
        raise EscapeError(text[bad.start() : bad.start() + 3])
    return unquote(text)
