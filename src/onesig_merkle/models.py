"""
OneSig Merkle Service - Input/Output Envelopes

JSON shapes consumed and produced by the API and the CLI:

    {"leaves": [{"nonce", "oneSigId", "targetOneSigAddress", "calls": [...]}]}
    {"encodedLeaves": ["0x...", ...]}
    {"merkleRoot": "0x...", "proofs": [{"leaf", "nonce", "oneSigId", ...}]}
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from onesig_merkle.crypto.abi import Call
from onesig_merkle.crypto.leaf import LeafRecord


def _number_to_str(value: Any) -> Any:
    """Accept JSON numbers for big-integer fields, keeping them as strings."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class _Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CallInput(_Envelope):
    """A single call as supplied in JSON."""

    to: str = ""
    value: str | None = Field(
        default=None,
        description="Wei value as a decimal or 0x hex string (or JSON number)",
    )
    data: str = "0x"

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> Any:
        return _number_to_str(value)

    def to_call(self) -> Call:
        return Call(to=self.to, value=self.value, data=self.data)


class LeafInput(_Envelope):
    """A OneSig leaf as supplied in JSON."""

    nonce: str = ""
    one_sig_id: str = Field(default="", alias="oneSigId")
    target_one_sig_address: str = Field(default="", alias="targetOneSigAddress")
    calls: list[CallInput] = Field(default_factory=list)

    @field_validator("nonce", "one_sig_id", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> Any:
        return _number_to_str(value)

    def to_record(self) -> LeafRecord:
        """Convert to the core leaf record."""
        return LeafRecord(
            one_sig_id=self.one_sig_id,
            nonce=self.nonce,
            target_address=self.target_one_sig_address,
            calls=tuple(call.to_call() for call in self.calls),
        )


class LeavesInput(_Envelope):
    """Input for the encode flow."""

    leaves: list[LeafInput] = Field(default_factory=list)


class EncodedLeavesInput(_Envelope):
    """Input for the merkle-only flow."""

    encoded_leaves: list[str] = Field(default_factory=list, alias="encodedLeaves")


class ProofOutput(_Envelope):
    """Proof for one leaf, with the record fields it was encoded from."""

    leaf: str
    nonce: str = ""
    one_sig_id: str = Field(default="", alias="oneSigId")
    target_one_sig_address: str = Field(default="", alias="targetOneSigAddress")
    proof: list[str] = Field(default_factory=list)


class MerkleResult(_Envelope):
    """Merkle root plus one proof per input leaf."""

    merkle_root: str = Field(alias="merkleRoot")
    proofs: list[ProofOutput] = Field(default_factory=list)


class VerifyInput(_Envelope):
    """Proof verification request."""

    root: str
    leaf: str
    proof: list[str] = Field(default_factory=list)
    sorted_pairs: bool = Field(default=False, alias="sortedPairs")
    leaf_index: int | None = Field(default=None, alias="leafIndex", ge=0)
    leaf_count: int | None = Field(default=None, alias="leafCount", gt=0)


class VerifyResult(_Envelope):
    """Proof verification result."""

    valid: bool
