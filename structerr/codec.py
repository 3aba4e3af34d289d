from __future__ import annotations

"""structerr/codec.py

Hex decoding with structured failures.

`bytes.fromhex` and `binascii.unhexlify` report bad input with a bare
ValueError/binascii.Error. `decode_hex` raises InvalidByteError naming the
offending character, or HexLengthError for odd-length input.
"""

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class HexLengthError(ValueError):
    def __init__(self, msg: str = "encoding/hex: odd length hex string"):
        super().__init__(msg)


class InvalidByteError(ValueError):
    def __init__(self, byte: str):
        super().__init__(byte)
        self.byte = byte

    def __str__(self) -> str:
        return f"encoding/hex: invalid byte: {self.byte!r}"


def decode_hex(text: str) -> bytes:
    for c in text:
        if c not in _HEX_DIGITS:
            raise InvalidByteError(c)
    if len(text) % 2 == 1:
        raise HexLengthError()
    return bytes.fromhex(text)
