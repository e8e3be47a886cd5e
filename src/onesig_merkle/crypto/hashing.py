"""
OneSig Merkle Service - Hash Primitive

Keccak-256 (the Ethereum variant, not NIST SHA3-256) and the hex helpers
shared by the encoder and the tree.
"""

import re

from eth_utils import keccak

from onesig_merkle.crypto.errors import InvalidHexError

HASH_LENGTH = 32

_HEX_DIGITS_RE = re.compile(r"[0-9a-fA-F]*")


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte Keccak-256 digest of data."""
    return keccak(data)


def hash_pair(left: bytes, right: bytes, sorted_pairs: bool = False) -> bytes:
    """
    Compute the parent of two nodes.

    With sorted_pairs the pair is ordered byte-wise ascending before
    concatenation, otherwise positional order is kept. The result is a
    single Keccak-256 over left || right.

    Args:
        left: Left node (32 bytes)
        right: Right node (32 bytes)
        sorted_pairs: Whether to sort the pair before hashing

    Returns:
        32-byte parent hash
    """
    if sorted_pairs and left > right:
        left, right = right, left
    return keccak256(left + right)


def strip_hex_prefix(value: str) -> str:
    """Drop a leading 0x / 0X."""
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def hex_to_bytes(value: str) -> bytes:
    """
    Decode a hex string with an optional 0x prefix.

    Raises:
        InvalidHexError: If the string is not valid hex
    """
    if not isinstance(value, str):
        raise InvalidHexError(f"expected hex string, got {type(value).__name__}")
    digits = strip_hex_prefix(value)
    # bytes.fromhex skips whitespace, so check the digits first
    if len(digits) % 2 or not _HEX_DIGITS_RE.fullmatch(digits):
        raise InvalidHexError(f"invalid hex string: {value!r}")
    return bytes.fromhex(digits)


def to_hex(data: bytes) -> str:
    """Render bytes as 0x-prefixed lowercase hex."""
    return "0x" + data.hex()
