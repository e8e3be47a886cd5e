"""
OneSig Merkle Service - Calls ABI Encoding

Encodes a OneSig call batch exactly as Solidity's abi.encode(calls) does
for:

    struct Call {
        address to;
        uint256 value;
        bytes data;
    }

Only this one shape is supported. Layout of abi.encode(Call[]):

    word 0          offset of the array argument (always 0x20)
    word 1          number of calls
    words 2..n+1    offset of each call, relative to word 2
    tail            each call: to | value | 0x60 | len(data) | data padded

All words are 32 bytes, big-endian.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from onesig_merkle.crypto.errors import (
    InvalidAddressError,
    InvalidNumberError,
    OutOfRangeError,
)
from onesig_merkle.crypto.hashing import hex_to_bytes, strip_hex_prefix

WORD_SIZE = 32
ADDRESS_SIZE = 20
UINT256_BITS = 256

# Offset of `data` inside an encoded Call: it follows the to/value/offset head
CALL_DATA_OFFSET = 3 * WORD_SIZE

_DECIMAL_RE = re.compile(r"[0-9]+")
_HEX_RE = re.compile(r"[0-9a-fA-F]+")

NumberLike = int | str


@dataclass(frozen=True)
class Call:
    """
    A single call in a OneSig transaction batch.

    Attributes:
        to: 0x-prefixed hex address of the callee
        value: Wei value (int, decimal string or 0x hex string); None means 0
        data: 0x-prefixed hex calldata, may be empty
    """

    to: str
    value: NumberLike | None = None
    data: str = "0x"


def parse_uint(value: NumberLike, bits: int, field: str = "value") -> int:
    """
    Parse an unsigned integer from an int, decimal string or 0x hex string.

    Args:
        value: Raw value
        bits: Width the value must fit in
        field: Field name used in error messages

    Returns:
        Parsed integer in [0, 2**bits)

    Raises:
        InvalidNumberError: If the value is not a number
        OutOfRangeError: If the value is negative or too wide
    """
    if isinstance(value, bool):
        raise InvalidNumberError(f"invalid {field}: {value!r}")

    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value
        negative = text.startswith("-")
        if negative:
            text = text[1:]

        if text[:2] in ("0x", "0X"):
            digits = text[2:]
            if not _HEX_RE.fullmatch(digits):
                raise InvalidNumberError(f"invalid {field}: invalid hex number {value!r}")
            number = int(digits, 16)
        elif _DECIMAL_RE.fullmatch(text):
            number = int(text, 10)
        else:
            raise InvalidNumberError(f"invalid {field}: invalid number {value!r}")

        if negative:
            number = -number
    else:
        raise InvalidNumberError(f"invalid {field}: unsupported type {type(value).__name__}")

    if number < 0:
        raise OutOfRangeError(f"invalid {field}: {number} is negative")
    if number.bit_length() > bits:
        raise OutOfRangeError(f"invalid {field}: {number} does not fit in {bits} bits")
    return number


def parse_address(value: str, field: str = "address") -> bytes:
    """
    Decode a hex address into exactly 20 bytes.

    Short addresses (including an odd number of hex digits) are
    left-padded with zeros. Addresses longer than 20 bytes are rejected.

    Raises:
        InvalidHexError: If the string is not hex
        InvalidAddressError: If it decodes to more than 20 bytes
    """
    digits = strip_hex_prefix(value) if isinstance(value, str) else value
    if isinstance(digits, str) and len(digits) % 2:
        digits = "0" + digits
    raw = hex_to_bytes(digits)
    if len(raw) > ADDRESS_SIZE:
        raise InvalidAddressError(f"invalid {field}: {value!r} is longer than {ADDRESS_SIZE} bytes")
    return raw.rjust(ADDRESS_SIZE, b"\x00")


def encode_uint256(number: int) -> bytes:
    """Encode a non-negative integer as a 32-byte big-endian word."""
    if number < 0 or number.bit_length() > UINT256_BITS:
        raise OutOfRangeError(f"{number} is not a valid uint256")
    return number.to_bytes(WORD_SIZE, "big")


def encode_bytes(data: bytes) -> bytes:
    """Encode dynamic bytes: length word followed by zero-padded data."""
    padding = -len(data) % WORD_SIZE
    return encode_uint256(len(data)) + data + b"\x00" * padding


def encode_call(call: Call) -> bytes:
    """Encode a single (address, uint256, bytes) tuple."""
    to = parse_address(call.to, field="call.to")
    value = 0 if call.value in (None, "") else parse_uint(call.value, UINT256_BITS, field="call.value")
    data = hex_to_bytes(call.data or "0x")

    return (
        to.rjust(WORD_SIZE, b"\x00")
        + encode_uint256(value)
        + encode_uint256(CALL_DATA_OFFSET)
        + encode_bytes(data)
    )


def encode_calls(calls: Sequence[Call]) -> bytes:
    """
    Encode calls as abi.encode(Call[]).

    Args:
        calls: Ordered calls

    Returns:
        Canonical ABI encoding
    """
    encoded = [encode_call(call) for call in calls]

    offsets = []
    position = len(encoded) * WORD_SIZE
    for item in encoded:
        offsets.append(encode_uint256(position))
        position += len(item)

    return (
        encode_uint256(WORD_SIZE)
        + encode_uint256(len(encoded))
        + b"".join(offsets)
        + b"".join(encoded)
    )
