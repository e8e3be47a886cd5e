"""
OneSig Merkle Service - Cryptographic Core

Provides OneSig leaf encoding, Merkle tree construction, proof generation,
and verification.
"""

from onesig_merkle.crypto.abi import Call, encode_calls
from onesig_merkle.crypto.errors import (
    DuplicateNonceError,
    EmptyInputError,
    InvalidAddressError,
    InvalidHexError,
    InvalidLeafError,
    InvalidNumberError,
    LeafNotFoundError,
    MissingFieldError,
    OneSigMerkleError,
    OutOfRangeError,
    UnsupportedVersionError,
    ValidationError,
)
from onesig_merkle.crypto.hashing import hash_pair, hex_to_bytes, keccak256, to_hex
from onesig_merkle.crypto.leaf import LEAF_ENCODING_VERSION, LeafRecord, encode_leaf, encode_leaf_data
from onesig_merkle.crypto.merkle import MerkleTree, TreeOptions, verify_proof

__all__ = [
    "Call",
    "LeafRecord",
    "LEAF_ENCODING_VERSION",
    "MerkleTree",
    "TreeOptions",
    "encode_calls",
    "encode_leaf",
    "encode_leaf_data",
    "hash_pair",
    "hex_to_bytes",
    "keccak256",
    "to_hex",
    "verify_proof",
    "OneSigMerkleError",
    "ValidationError",
    "InvalidHexError",
    "InvalidAddressError",
    "InvalidNumberError",
    "OutOfRangeError",
    "MissingFieldError",
    "InvalidLeafError",
    "DuplicateNonceError",
    "UnsupportedVersionError",
    "EmptyInputError",
    "LeafNotFoundError",
]
