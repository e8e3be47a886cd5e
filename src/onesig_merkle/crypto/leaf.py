"""
OneSig Merkle Service - Leaf Encoding

Turns a OneSig leaf record into the 32-byte commitment checked on-chain.

Version 1 mirrors the contract:

    keccak256(keccak256(abi.encodePacked(
        LEAF_ENCODING_VERSION,  // uint8
        ONE_SIG_ID,             // uint64
        address(this),          // bytes32, left-padded
        _nonce,                 // uint64
        abi.encode(_calls)
    )))
"""

from collections.abc import Sequence
from dataclasses import dataclass

from onesig_merkle.crypto.abi import (
    WORD_SIZE,
    Call,
    NumberLike,
    encode_calls,
    parse_address,
    parse_uint,
)
from onesig_merkle.crypto.errors import MissingFieldError, UnsupportedVersionError
from onesig_merkle.crypto.hashing import keccak256

LEAF_ENCODING_VERSION = 1
UINT64_BITS = 64


@dataclass(frozen=True)
class LeafRecord:
    """
    A batch of calls to execute on one OneSig instance.

    Attributes:
        one_sig_id: Chain/domain identifier of the OneSig contract
        nonce: Nonce the batch executes at
        target_address: Address of the OneSig contract
        calls: Ordered calls, at least one
    """

    one_sig_id: NumberLike
    nonce: NumberLike
    target_address: str
    calls: Sequence[Call]


def _require(value: object, field: str) -> None:
    if value is None or value == "":
        raise MissingFieldError(f"{field} is required")


def encode_leaf_data_v1(record: LeafRecord) -> bytes:
    """Build the version 1 pre-image (before hashing)."""
    _require(record.one_sig_id, "oneSigId")
    _require(record.nonce, "nonce")
    _require(record.target_address, "targetOneSigAddress")
    if not record.calls:
        raise MissingFieldError("at least one call is required")

    one_sig_id = parse_uint(record.one_sig_id, UINT64_BITS, field="oneSigId")
    nonce = parse_uint(record.nonce, UINT64_BITS, field="nonce")
    target = parse_address(record.target_address, field="targetOneSigAddress")

    return (
        bytes([LEAF_ENCODING_VERSION])
        + one_sig_id.to_bytes(8, "big")
        + target.rjust(WORD_SIZE, b"\x00")
        + nonce.to_bytes(8, "big")
        + encode_calls(record.calls)
    )


_ENCODERS = {
    1: encode_leaf_data_v1,
}


def encode_leaf_data(record: LeafRecord, version: int = LEAF_ENCODING_VERSION) -> bytes:
    """
    Build the packed pre-image for a record.

    Raises:
        UnsupportedVersionError: If the version is unknown
        ValidationError: If any field fails to parse
    """
    encoder = _ENCODERS.get(version)
    if encoder is None:
        raise UnsupportedVersionError(f"unsupported leaf encoding version: {version}")
    return encoder(record)


def encode_leaf(record: LeafRecord, version: int = LEAF_ENCODING_VERSION) -> bytes:
    """
    Encode a record into its 32-byte leaf.

    The pre-image is hashed twice; the contract hashes the submitted
    encoding once more before checking the Merkle proof.

    Args:
        record: Leaf record
        version: Leaf encoding version (only 1 is defined)

    Returns:
        32-byte leaf commitment

    Raises:
        UnsupportedVersionError: If the version is unknown
        ValidationError: If any field fails to parse
    """
    return keccak256(keccak256(encode_leaf_data(record, version)))
