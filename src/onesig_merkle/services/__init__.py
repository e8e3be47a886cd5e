"""
OneSig Merkle Service - Services Package

Provides record validation, Merkle generation and proof verification.
"""

from onesig_merkle.services.merkle_service import (
    MerkleService,
    parse_encoded_string,
    validate_records,
)

__all__ = [
    "MerkleService",
    "parse_encoded_string",
    "validate_records",
]
