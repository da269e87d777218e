"""Clarity value (de)serialization for read-only contract calls.

The Stacks node's `call-read` endpoint takes hex-encoded Clarity values as
arguments and answers with a hex-encoded Clarity value.  Only the subset
of the wire format the verification flow needs is encoded (buffers), but
every value type is decoded so that any contract reply can be inspected.

Wire format: one type-id byte, then a type-specific body.  Lengths are
4-byte big-endian unless noted.

  0x00 int            16 bytes, signed
  0x01 uint           16 bytes, unsigned
  0x02 buffer         length + bytes
  0x03 / 0x04         true / false
  0x05 principal      version byte + 20-byte hash160
  0x06 contract       version byte + hash160 + 1-byte name length + name
  0x07 / 0x08         response ok / err, wrapping one value
  0x09 / 0x0a         optional none / some (some wraps one value)
  0x0b list           count + values
  0x0c tuple          count + (1-byte name length, name, value) pairs
  0x0d / 0x0e         string-ascii / string-utf8, length + bytes

Decoded Python values: int, bool, None, str (principals as c32check
addresses, strings as text), "0x"-prefixed hex for buffers, list, dict for
tuples, and ResponseOk / ResponseErr for responses.  `some` decodes to its
inner value, so `(optional uint)` yields int | None.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass
from typing import Any

C32_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

_INT = 0x00
_UINT = 0x01
_BUFFER = 0x02
_TRUE = 0x03
_FALSE = 0x04
_STANDARD_PRINCIPAL = 0x05
_CONTRACT_PRINCIPAL = 0x06
_RESPONSE_OK = 0x07
_RESPONSE_ERR = 0x08
_NONE = 0x09
_SOME = 0x0A
_LIST = 0x0B
_TUPLE = 0x0C
_STRING_ASCII = 0x0D
_STRING_UTF8 = 0x0E


class ClarityDecodeError(ValueError):
    """The bytes are not a well-formed Clarity value."""


@dataclass(frozen=True, slots=True)
class ResponseOk:
    value: Any


@dataclass(frozen=True, slots=True)
class ResponseErr:
    value: Any


# ---------------------------------------------------------------------------
# c32check addresses
# ---------------------------------------------------------------------------


def c32_encode(data: bytes) -> str:
    """Crockford-style base32 used by Stacks; leading zero bytes become '0'."""
    n = int.from_bytes(data, "big")
    digits = []
    while n:
        n, rem = divmod(n, 32)
        digits.append(C32_ALPHABET[rem])
    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    return C32_ALPHABET[0] * leading_zeros + "".join(reversed(digits))


def c32_address(version: int, hash160: bytes) -> str:
    if not 0 <= version < len(C32_ALPHABET):
        raise ClarityDecodeError(f"principal version {version} out of range")
    checksum = hashlib.sha256(
        hashlib.sha256(bytes([version]) + hash160).digest()
    ).digest()[:4]
    return "S" + C32_ALPHABET[version] + c32_encode(hash160 + checksum)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def buffer_cv(data: bytes) -> bytes:
    return bytes([_BUFFER]) + struct.pack(">I", len(data)) + data


def to_hex(value: bytes) -> str:
    return "0x" + value.hex()


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def take(self, n: int) -> bytes:
        end = self._pos + n
        if end > len(self._data):
            raise ClarityDecodeError(
                f"unexpected end of input at byte {self._pos} (wanted {n})"
            )
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def u32(self) -> int:
        return struct.unpack(">I", self.take(4))[0]

    @property
    def exhausted(self) -> bool:
        return self._pos == len(self._data)


def _read_value(r: _Reader) -> Any:
    type_id = r.byte()

    if type_id == _INT:
        return int.from_bytes(r.take(16), "big", signed=True)
    if type_id == _UINT:
        return int.from_bytes(r.take(16), "big")
    if type_id == _BUFFER:
        return "0x" + r.take(r.u32()).hex()
    if type_id == _TRUE:
        return True
    if type_id == _FALSE:
        return False
    if type_id == _STANDARD_PRINCIPAL:
        version = r.byte()
        return c32_address(version, r.take(20))
    if type_id == _CONTRACT_PRINCIPAL:
        version = r.byte()
        address = c32_address(version, r.take(20))
        name = r.take(r.byte()).decode("ascii")
        return f"{address}.{name}"
    if type_id == _RESPONSE_OK:
        return ResponseOk(_read_value(r))
    if type_id == _RESPONSE_ERR:
        return ResponseErr(_read_value(r))
    if type_id == _NONE:
        return None
    if type_id == _SOME:
        return _read_value(r)
    if type_id == _LIST:
        return [_read_value(r) for _ in range(r.u32())]
    if type_id == _TUPLE:
        out: dict[str, Any] = {}
        for _ in range(r.u32()):
            key = r.take(r.byte()).decode("ascii")
            out[key] = _read_value(r)
        return out
    if type_id == _STRING_ASCII:
        return r.take(r.u32()).decode("ascii")
    if type_id == _STRING_UTF8:
        return r.take(r.u32()).decode("utf-8")

    raise ClarityDecodeError(f"unknown Clarity type id 0x{type_id:02x}")


def decode(data: bytes | str) -> Any:
    """Decode one Clarity value from raw bytes or a (0x-prefixed) hex string."""
    if isinstance(data, str):
        hex_str = data[2:] if data.startswith("0x") else data
        try:
            data = bytes.fromhex(hex_str)
        except ValueError as exc:
            raise ClarityDecodeError(f"not a hex string: {exc}") from None

    reader = _Reader(data)
    try:
        value = _read_value(reader)
    except UnicodeDecodeError as exc:
        raise ClarityDecodeError(f"invalid string payload: {exc}") from None
    if not reader.exhausted:
        raise ClarityDecodeError("trailing bytes after Clarity value")
    return value
