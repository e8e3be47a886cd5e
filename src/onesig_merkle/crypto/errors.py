"""
OneSig Merkle Service - Error Types

Typed failures raised by the leaf encoder and the Merkle tree engine.
"""


class OneSigMerkleError(Exception):
    """Base exception for OneSig Merkle errors."""

    pass


class ValidationError(OneSigMerkleError):
    """Input could not be validated or parsed."""

    pass


class InvalidHexError(ValidationError):
    """Malformed hex string."""

    pass


class InvalidAddressError(ValidationError):
    """Address does not decode to at most 20 bytes."""

    pass


class InvalidNumberError(ValidationError):
    """Value is neither a decimal nor a 0x-prefixed hex integer."""

    pass


class OutOfRangeError(ValidationError):
    """Integer does not fit the target width or is negative."""

    pass


class MissingFieldError(ValidationError):
    """A required field is absent."""

    pass


class InvalidLeafError(ValidationError):
    """Leaf is not a 32-byte value."""

    pass


class DuplicateNonceError(ValidationError):
    """Two records share the same nonce within one oneSigId."""

    pass


class UnsupportedVersionError(OneSigMerkleError):
    """Unknown leaf encoding version."""

    pass


class EmptyInputError(OneSigMerkleError):
    """No leaves supplied to tree construction."""

    pass


class LeafNotFoundError(OneSigMerkleError):
    """Proof requested for a leaf that is not in the tree."""

    pass
