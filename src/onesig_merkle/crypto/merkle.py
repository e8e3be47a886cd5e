"""
OneSig Merkle Service - Merkle Tree Implementation

Keccak-256 Merkle tree over 32-byte leaves with inclusion proof generation
and verification, compatible with the OneSig contract and MerkleTreeJS.

Two independent policies are captured at construction time:
- sort_leaves: leaves are sorted byte-wise before the tree is built
- sorted_pairs: each pair is sorted byte-wise before hashing, which lets
  proofs omit left/right direction information

For odd numbers of nodes, the last node is promoted (not duplicated) to the
next level, so no sibling is recorded for it at that level.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from onesig_merkle.crypto.errors import EmptyInputError, InvalidLeafError, LeafNotFoundError
from onesig_merkle.crypto.hashing import HASH_LENGTH, hash_pair, to_hex


@dataclass(frozen=True)
class TreeOptions:
    """
    Tree construction policies.

    Attributes:
        sorted_pairs: Sort each pair before hashing
        sort_leaves: Sort leaves before building
    """

    sorted_pairs: bool = False
    sort_leaves: bool = False


def sort_leaves(leaves: Sequence[bytes]) -> list[bytes]:
    """Return a byte-wise ascending copy of leaves."""
    return sorted(leaves)


def build_layers(leaves: Sequence[bytes], sorted_pairs: bool = False) -> list[list[bytes]]:
    """
    Reduce leaves level by level up to the root.

    Returns:
        All layers, leaves first and the single-node root layer last
    """
    layers = [list(leaves)]
    current_level = layers[0]

    while len(current_level) > 1:
        next_level = []

        for i in range(0, len(current_level), 2):
            if i + 1 < len(current_level):
                next_level.append(hash_pair(current_level[i], current_level[i + 1], sorted_pairs))
            else:
                # Odd case: promote the last node
                next_level.append(current_level[i])

        layers.append(next_level)
        current_level = next_level

    return layers


class MerkleTree:
    """
    Immutable Merkle tree over 32-byte leaves.

    Example:
        >>> tree = MerkleTree.build(leaves, TreeOptions(sorted_pairs=True))
        >>> proof = tree.prove_inclusion(leaves[0])
        >>> verify_proof(tree.root, leaves[0], proof, tree.options)
        True
    """

    def __init__(self, layers: list[list[bytes]], options: TreeOptions) -> None:
        """
        Initialize Merkle tree (internal use).

        Use build() to construct trees.
        """
        self._layers = layers
        self._options = options

        # First occurrence wins for duplicate leaves
        self._positions: dict[bytes, int] = {}
        for i, leaf in enumerate(layers[0]):
            self._positions.setdefault(leaf, i)

    @classmethod
    def build(cls, leaves: Sequence[bytes], options: TreeOptions | None = None) -> "MerkleTree":
        """
        Construct a Merkle tree from leaf commitments.

        The caller's sequence is copied and never mutated.

        Args:
            leaves: 32-byte leaves
            options: Construction policies (defaults to no sorting)

        Returns:
            Constructed MerkleTree

        Raises:
            EmptyInputError: If leaves is empty
            InvalidLeafError: If a leaf is not 32 bytes
        """
        options = options or TreeOptions()

        if not leaves:
            raise EmptyInputError("Cannot create Merkle tree from empty leaves")

        copied = []
        for i, leaf in enumerate(leaves):
            if not isinstance(leaf, (bytes, bytearray)) or len(leaf) != HASH_LENGTH:
                raise InvalidLeafError(f"leaf at index {i} is not a {HASH_LENGTH}-byte value")
            copied.append(bytes(leaf))

        if options.sort_leaves:
            copied = sort_leaves(copied)

        return cls(build_layers(copied, options.sorted_pairs), options)

    @property
    def options(self) -> TreeOptions:
        """Get the construction policies."""
        return self._options

    @property
    def root(self) -> bytes:
        """Get the Merkle root."""
        return self._layers[-1][0]

    @property
    def root_hex(self) -> str:
        """Get the Merkle root as 0x-prefixed hex."""
        return to_hex(self.root)

    @property
    def leaves(self) -> tuple[bytes, ...]:
        """Get the stored (possibly sorted) leaves."""
        return tuple(self._layers[0])

    @property
    def leaf_count(self) -> int:
        """Get the number of leaves."""
        return len(self._layers[0])

    @property
    def depth(self) -> int:
        """Get the number of hashing levels above the leaves."""
        return len(self._layers) - 1

    def index_of(self, leaf: bytes) -> int:
        """
        Find the first position of a leaf.

        Raises:
            LeafNotFoundError: If the leaf is not in the tree
        """
        index = self._positions.get(bytes(leaf))
        if index is None:
            raise LeafNotFoundError(f"leaf {to_hex(bytes(leaf))} not found in tree")
        return index

    def prove_index(self, leaf_index: int) -> list[bytes]:
        """
        Generate the inclusion proof for the leaf at a position.

        Args:
            leaf_index: Index into the stored leaves

        Returns:
            Sibling hashes ordered leaf-to-root

        Raises:
            IndexError: If leaf_index out of bounds
        """
        if leaf_index < 0 or leaf_index >= self.leaf_count:
            raise IndexError(f"Leaf index {leaf_index} out of bounds")

        proof = []
        index = leaf_index

        for level in self._layers[:-1]:
            sibling = index ^ 1
            # A promoted node has no sibling at this level
            if sibling < len(level):
                proof.append(level[sibling])
            index //= 2

        return proof

    def prove_inclusion(self, leaf: bytes) -> list[bytes]:
        """
        Generate the inclusion proof for a leaf.

        With duplicate leaves, the first occurrence is proven.

        Raises:
            LeafNotFoundError: If the leaf is not in the tree
        """
        return self.prove_index(self.index_of(leaf))

    def verify(self, leaf: bytes, proof: Sequence[bytes]) -> bool:
        """Verify a proof against this tree's root and options."""
        if self._options.sorted_pairs:
            return verify_proof(self.root, leaf, proof, self._options)
        try:
            leaf_index = self.index_of(leaf)
        except LeafNotFoundError:
            return False
        return verify_proof(
            self.root,
            leaf,
            proof,
            self._options,
            leaf_index=leaf_index,
            leaf_count=self.leaf_count,
        )


def compute_root_from_proof(
    leaf: bytes,
    proof: Sequence[bytes],
    sorted_pairs: bool = False,
    leaf_index: int | None = None,
    leaf_count: int | None = None,
) -> bytes | None:
    """
    Fold a proof into the root it commits to.

    Without a position every element is hashed on the right of the running
    value (the order is irrelevant with sorted_pairs). With leaf_index and
    leaf_count the position decides the side at each level and promoted
    levels consume no element.

    Returns:
        Computed root, or None if the proof length does not match the
        position
    """
    current = bytes(leaf)

    if leaf_index is None or leaf_count is None:
        for element in proof:
            current = hash_pair(current, bytes(element), sorted_pairs)
        return current

    if leaf_index < 0 or leaf_index >= leaf_count:
        return None

    elements = iter(proof)
    index, width = leaf_index, leaf_count
    while width > 1:
        sibling = index ^ 1
        if sibling < width:
            element = next(elements, None)
            if element is None:
                return None
            if index & 1:
                current = hash_pair(bytes(element), current, sorted_pairs)
            else:
                current = hash_pair(current, bytes(element), sorted_pairs)
        index //= 2
        width = (width + 1) // 2

    if next(elements, None) is not None:
        return None
    return current


def verify_proof(
    root: bytes,
    leaf: bytes,
    proof: Sequence[bytes],
    options: TreeOptions | None = None,
    leaf_index: int | None = None,
    leaf_count: int | None = None,
) -> bool:
    """
    Verify a Merkle inclusion proof.

    Needs no tree instance: the root, leaf and proof are enough, exactly as
    for the on-chain verifier. An invalid proof returns False.

    Trees built without sorted_pairs hash pairs positionally, so proofs for
    leaves that are ever a right child only verify when leaf_index and
    leaf_count (of the stored, possibly sorted, leaves) are given.

    Args:
        root: Expected Merkle root
        leaf: Leaf being proven
        proof: Sibling hashes ordered leaf-to-root
        options: Policies the tree was built with
        leaf_index: Optional position of the leaf in the tree
        leaf_count: Optional number of leaves in the tree

    Returns:
        True if the proof reconstructs the root
    """
    options = options or TreeOptions()
    computed = compute_root_from_proof(
        leaf,
        proof,
        options.sorted_pairs,
        leaf_index=leaf_index,
        leaf_count=leaf_count,
    )
    return computed is not None and computed == bytes(root)
