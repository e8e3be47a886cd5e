"""
OneSig Merkle Service - Merkle Generation Service

Validates leaf records, encodes them, builds the Merkle tree and renders
roots and proofs as hex. Shared by the API and the CLI.
"""

import time
from collections.abc import Sequence

import structlog

from onesig_merkle.core.config import settings
from onesig_merkle.crypto.errors import (
    DuplicateNonceError,
    EmptyInputError,
    MissingFieldError,
    OneSigMerkleError,
    ValidationError,
)
from onesig_merkle.crypto.hashing import hex_to_bytes, to_hex
from onesig_merkle.crypto.leaf import encode_leaf
from onesig_merkle.crypto.merkle import MerkleTree, TreeOptions, verify_proof
from onesig_merkle.metrics import MerkleMetrics, get_merkle_metrics
from onesig_merkle.models import LeafInput, MerkleResult, ProofOutput

logger = structlog.get_logger(__name__)


def validate_records(leaves: Sequence[LeafInput]) -> None:
    """
    Validate leaf records before encoding.

    Checks required fields and that no nonce repeats within one oneSigId.

    Raises:
        EmptyInputError: If no leaves are given
        MissingFieldError: If a required field is absent
        DuplicateNonceError: If a nonce repeats for a oneSigId
    """
    if not leaves:
        raise EmptyInputError("no leaves provided")

    seen: dict[str, set[str]] = {}

    for leaf in leaves:
        if not leaf.one_sig_id:
            raise MissingFieldError("oneSigId is required")
        if not leaf.nonce:
            raise MissingFieldError("nonce is required")
        if not leaf.target_one_sig_address:
            raise MissingFieldError("targetOneSigAddress is required")
        if not leaf.calls:
            raise MissingFieldError("at least one call is required")

        nonces = seen.setdefault(leaf.one_sig_id, set())
        if leaf.nonce in nonces:
            raise DuplicateNonceError(
                f"duplicate nonce {leaf.nonce} found for oneSigId {leaf.one_sig_id}"
            )
        nonces.add(leaf.nonce)

        for i, call in enumerate(leaf.calls):
            if not call.to:
                raise MissingFieldError(f"call {i}: 'to' address is required")
            if call.value is None:
                raise MissingFieldError(f"call {i}: 'value' is required")


def parse_encoded_string(text: str) -> list[str]:
    """Split a comma-separated list of hex leaves."""
    return [part.strip() for part in text.split(",")]


class MerkleService:
    """
    Merkle generation service.

    Orchestrates:
    - Record validation and leaf encoding
    - Tree construction under the requested policies
    - Proof generation and hex rendering
    - Proof verification from hex inputs
    """

    def __init__(self, metrics: MerkleMetrics | None = None, max_leaves: int | None = None) -> None:
        """Initialize Merkle service."""
        self._metrics = metrics or get_merkle_metrics()
        self._max_leaves = max_leaves or settings.MAX_LEAVES

    def _check_size(self, count: int) -> None:
        if count > self._max_leaves:
            raise ValidationError(f"too many leaves: {count} exceeds limit of {self._max_leaves}")

    def encode_records(self, leaves: Sequence[LeafInput], version: int) -> list[bytes]:
        """
        Encode validated records into leaves.

        Raises:
            OneSigMerkleError: If any record fails to encode
        """
        encoded = []
        for leaf in leaves:
            try:
                encoded.append(encode_leaf(leaf.to_record(), version))
            except OneSigMerkleError as e:
                self._metrics.record_encoding_failure(type(e).__name__)
                logger.warning(
                    "Leaf encoding failed",
                    nonce=leaf.nonce,
                    one_sig_id=leaf.one_sig_id,
                    error=str(e),
                )
                raise type(e)(
                    f"failed to encode leaf (nonce: {leaf.nonce}, oneSigId: {leaf.one_sig_id}): {e}"
                ) from e

        self._metrics.record_leaves_encoded(len(encoded), version)
        return encoded

    def build_tree(self, leaves: Sequence[bytes], options: TreeOptions) -> MerkleTree:
        """Build a tree and record build metrics."""
        start = time.perf_counter()
        tree = MerkleTree.build(leaves, options)
        duration = time.perf_counter() - start

        self._metrics.record_tree_build(duration, tree.leaf_count)
        logger.info(
            "Merkle tree built",
            leaf_count=tree.leaf_count,
            depth=tree.depth,
            root=tree.root_hex,
            sorted_pairs=options.sorted_pairs,
            sort_leaves=options.sort_leaves,
            duration_ms=round(duration * 1000, 3),
        )
        return tree

    def _prove_all(
        self,
        tree: MerkleTree,
        leaves: Sequence[bytes],
        records: Sequence[LeafInput] | None = None,
    ) -> list[ProofOutput]:
        start = time.perf_counter()
        proofs = []

        # Proofs follow input order, not the (possibly sorted) tree order
        for i, leaf in enumerate(leaves):
            fields = {}
            if records is not None:
                fields = {
                    "nonce": records[i].nonce,
                    "one_sig_id": records[i].one_sig_id,
                    "target_one_sig_address": records[i].target_one_sig_address,
                }
            proofs.append(
                ProofOutput(
                    leaf=to_hex(leaf),
                    proof=[to_hex(element) for element in tree.prove_inclusion(leaf)],
                    **fields,
                )
            )

        self._metrics.record_proofs(time.perf_counter() - start, len(proofs))
        return proofs

    def generate_from_records(
        self,
        leaves: Sequence[LeafInput],
        version: int | None = None,
        options: TreeOptions | None = None,
    ) -> MerkleResult:
        """
        Encode records and generate the Merkle root with proofs.

        Args:
            leaves: Leaf records
            version: Leaf encoding version (defaults to configuration)
            options: Tree policies (defaults to configuration)

        Returns:
            MerkleResult with one proof per record, in input order

        Raises:
            OneSigMerkleError: If validation, encoding or tree building fails
        """
        version = version if version is not None else settings.LEAF_ENCODING_VERSION
        options = options or TreeOptions(
            sorted_pairs=settings.ENCODE_SORTED_PAIRS,
            sort_leaves=settings.ENCODE_SORT_LEAVES,
        )

        validate_records(leaves)
        self._check_size(len(leaves))

        encoded = self.encode_records(leaves, version)
        tree = self.build_tree(encoded, options)

        return MerkleResult(
            merkle_root=tree.root_hex,
            proofs=self._prove_all(tree, encoded, leaves),
        )

    def generate_from_leaves(
        self,
        leaves: Sequence[bytes],
        options: TreeOptions | None = None,
    ) -> MerkleResult:
        """
        Generate the Merkle root with proofs from pre-encoded leaves.

        Proofs carry no record fields in this mode.
        """
        options = options or TreeOptions(
            sorted_pairs=settings.MERKLE_SORTED_PAIRS,
            sort_leaves=settings.MERKLE_SORT_LEAVES,
        )

        if not leaves:
            raise EmptyInputError("no leaves provided")
        self._check_size(len(leaves))

        tree = self.build_tree(leaves, options)
        return MerkleResult(
            merkle_root=tree.root_hex,
            proofs=self._prove_all(tree, leaves),
        )

    def generate_from_encoded_leaves(
        self,
        encoded_leaves: Sequence[str],
        options: TreeOptions | None = None,
    ) -> MerkleResult:
        """
        Generate the Merkle root with proofs from hex-encoded leaves.

        Raises:
            InvalidHexError: If a leaf is not valid hex
        """
        leaves = []
        for i, hex_leaf in enumerate(encoded_leaves):
            try:
                leaves.append(hex_to_bytes(hex_leaf))
            except ValidationError as e:
                raise type(e)(f"invalid hex string at index {i}: {e}") from e

        return self.generate_from_leaves(leaves, options)

    def verify_proof_hex(
        self,
        root: str,
        leaf: str,
        proof: Sequence[str],
        options: TreeOptions | None = None,
        leaf_index: int | None = None,
        leaf_count: int | None = None,
    ) -> bool:
        """
        Verify a proof given as hex strings.

        Raises:
            InvalidHexError: If any input is not valid hex
        """
        root_bytes = hex_to_bytes(root)
        leaf_bytes = hex_to_bytes(leaf)
        proof_bytes = [hex_to_bytes(element) for element in proof]

        valid = verify_proof(
            root_bytes,
            leaf_bytes,
            proof_bytes,
            options,
            leaf_index=leaf_index,
            leaf_count=leaf_count,
        )
        self._metrics.record_verification(valid)
        logger.debug("Proof verified", root=root, leaf=leaf, valid=valid)
        return valid
