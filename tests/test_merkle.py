"""
Unit tests for the Merkle Tree implementation.

Includes test vectors and edge case coverage.
"""

import itertools
import time

import pytest
from conftest import make_leaf

from onesig_merkle.crypto.errors import EmptyInputError, InvalidLeafError, LeafNotFoundError
from onesig_merkle.crypto.hashing import hash_pair, keccak256
from onesig_merkle.crypto.merkle import (
    MerkleTree,
    TreeOptions,
    build_layers,
    compute_root_from_proof,
    verify_proof,
)

ALL_OPTIONS = [
    TreeOptions(sorted_pairs=sorted_pairs, sort_leaves=sort_leaves)
    for sorted_pairs, sort_leaves in itertools.product([False, True], repeat=2)
]

SORTED = TreeOptions(sorted_pairs=True)


def flip_bit(value: bytes, bit: int = 0) -> bytes:
    data = bytearray(value)
    data[bit // 8] ^= 1 << (bit % 8)
    return bytes(data)


class TestMerkleTree:
    """Tests for MerkleTree construction."""

    def test_single_leaf(self) -> None:
        """Test tree with single leaf: the root is the leaf itself."""
        leaf = make_leaf(0)
        tree = MerkleTree.build([leaf])

        assert tree.leaf_count == 1
        assert tree.root == leaf
        assert tree.depth == 0

    @pytest.mark.parametrize("options", ALL_OPTIONS)
    def test_single_leaf_any_options(self, options: TreeOptions) -> None:
        """Test single-leaf round trip for every policy."""
        leaf = make_leaf(7)
        assert MerkleTree.build([leaf], options).root == leaf

    def test_two_leaves(self) -> None:
        """Test tree with two leaves."""
        a, b = make_leaf(0), make_leaf(1)
        tree = MerkleTree.build([a, b])

        assert tree.root == keccak256(a + b)

    def test_four_leaves(self) -> None:
        """Test tree with four leaves (perfect binary tree)."""
        h0, h1, h2, h3 = (make_leaf(i) for i in range(4))
        tree = MerkleTree.build([h0, h1, h2, h3])

        expected_root = hash_pair(hash_pair(h0, h1), hash_pair(h2, h3))
        assert tree.root == expected_root
        assert tree.depth == 2

    def test_three_leaves_odd(self) -> None:
        """Test tree with odd number of leaves."""
        h0, h1, h2 = (make_leaf(i) for i in range(3))
        tree = MerkleTree.build([h0, h1, h2])

        # With promotion strategy:
        # Level 0: h0, h1, h2
        # Level 1: h01, h2 (promoted)
        # Level 2: root = hash(h01, h2)
        h01 = hash_pair(h0, h1)
        assert tree.root == hash_pair(h01, h2)

    def test_five_leaves_odd(self) -> None:
        """Test promotion across two levels."""
        h = [make_leaf(i) for i in range(5)]
        tree = MerkleTree.build(h)

        # Level 1: h01, h23, h4; level 2: h0123, h4; root: hash(h0123, h4)
        h0123 = hash_pair(hash_pair(h[0], h[1]), hash_pair(h[2], h[3]))
        assert tree.root == hash_pair(h0123, h[4])

    def test_zero_leaf_vectors(self) -> None:
        """Test known Keccak zero-subtree roots."""
        zero = bytes(32)

        assert MerkleTree.build([zero] * 2).root.hex() == (
            "ad3228b676f7d3cd4284a5443f17f1962b36e491b30a40b2405849e597ba5fb5"
        )
        assert MerkleTree.build([zero] * 4).root.hex() == (
            "b4c11951957c6f8f642c4af61cd6b24640fec6dc7fc607ee8206a99e92410d30"
        )

    def test_empty_leaves_raises(self) -> None:
        """Test that empty leaves raises EmptyInputError."""
        with pytest.raises(EmptyInputError, match="empty"):
            MerkleTree.build([])

    @pytest.mark.parametrize("bad_leaf", [b"", b"\x00" * 31, b"\x00" * 33, "00" * 32])
    def test_invalid_leaf_raises(self, bad_leaf) -> None:
        """Test leaves must be 32 bytes."""
        with pytest.raises(InvalidLeafError):
            MerkleTree.build([make_leaf(0), bad_leaf])

    def test_input_not_mutated(self) -> None:
        """Test the caller's list is left untouched when sorting."""
        leaves = [make_leaf(i) for i in range(6)]
        original = list(leaves)

        MerkleTree.build(leaves, TreeOptions(sort_leaves=True))

        assert leaves == original

    def test_sort_leaves(self) -> None:
        """Test stored leaves are sorted byte-wise."""
        leaves = [make_leaf(i) for i in range(6)]
        tree = MerkleTree.build(leaves, TreeOptions(sort_leaves=True))

        assert list(tree.leaves) == sorted(leaves)
        assert tree.root == MerkleTree.build(sorted(leaves)).root

    def test_sort_leaves_order_independent(self) -> None:
        """Test sorted-leaf trees ignore input order."""
        leaves = [make_leaf(i) for i in range(7)]
        options = TreeOptions(sort_leaves=True)

        assert MerkleTree.build(leaves, options).root == MerkleTree.build(leaves[::-1], options).root

    def test_deterministic_root(self) -> None:
        """Test that same leaves produce same root."""
        leaves = [make_leaf(i) for i in range(4)]
        assert MerkleTree.build(leaves).root == MerkleTree.build(leaves).root

    def test_unsorted_pairs_order_sensitive(self) -> None:
        """Test that different order produces different root."""
        a, b = make_leaf(0), make_leaf(1)

        assert MerkleTree.build([a, b]).root != MerkleTree.build([b, a]).root

    def test_sorted_pairs_order_insensitive(self) -> None:
        """Test sorted pairs make a pair commutative."""
        a, b = make_leaf(0), make_leaf(1)

        assert MerkleTree.build([a, b], SORTED).root == MerkleTree.build([b, a], SORTED).root

    def test_root_hex(self) -> None:
        """Test root rendering."""
        tree = MerkleTree.build([make_leaf(0), make_leaf(1)])
        assert tree.root_hex == "0x" + tree.root.hex()

    def test_layers_bounded(self) -> None:
        """Test each layer halves (rounding up)."""
        layers = build_layers([make_leaf(i) for i in range(9)])
        assert [len(layer) for layer in layers] == [9, 5, 3, 2, 1]


class TestProofGeneration:
    """Tests for proof generation."""

    def test_proof_single_leaf(self) -> None:
        """Test proof for single leaf tree is empty."""
        leaf = make_leaf(0)
        assert MerkleTree.build([leaf]).prove_inclusion(leaf) == []

    def test_proof_two_leaves(self) -> None:
        """Test proof generation for two-leaf tree."""
        a, b = make_leaf(0), make_leaf(1)
        tree = MerkleTree.build([a, b])

        assert tree.prove_inclusion(a) == [b]
        assert tree.prove_inclusion(b) == [a]

    def test_proof_four_leaves(self) -> None:
        """Test proof generation for four-leaf tree."""
        h = [make_leaf(i) for i in range(4)]
        tree = MerkleTree.build(h)

        assert tree.prove_inclusion(h[0]) == [h[1], hash_pair(h[2], h[3])]
        assert tree.prove_inclusion(h[3]) == [h[2], hash_pair(h[0], h[1])]

    def test_proof_three_leaves_promoted(self) -> None:
        """Test the promoted leaf skips the level it has no sibling on."""
        h0, h1, h2 = (make_leaf(i) for i in range(3))
        tree = MerkleTree.build([h0, h1, h2])

        assert tree.prove_inclusion(h2) == [hash_pair(h0, h1)]
        assert tree.prove_inclusion(h0) == [h1, h2]
        assert tree.prove_inclusion(h1) == [h0, h2]

    def test_proof_uses_sorted_leaf_positions(self) -> None:
        """Test proofs follow the stored (sorted) order."""
        leaves = [make_leaf(i) for i in range(4)]
        tree = MerkleTree.build(leaves, TreeOptions(sorted_pairs=True, sort_leaves=True))
        ordered = sorted(leaves)

        assert tree.prove_inclusion(ordered[0])[0] == ordered[1]

    def test_proof_duplicate_leaf_first_match(self) -> None:
        """Test duplicates prove the first occurrence."""
        a, b = make_leaf(0), make_leaf(1)
        tree = MerkleTree.build([a, a, b])

        assert tree.index_of(a) == 0
        assert tree.prove_inclusion(a) == [a, b]

    def test_index_of_first_match_non_adjacent(self) -> None:
        """Test the first of scattered duplicates is found."""
        a, b, c = make_leaf(0), make_leaf(1), make_leaf(2)
        tree = MerkleTree.build([b, a, c, a, b])

        assert tree.index_of(a) == 1
        assert tree.index_of(b) == 0
        assert tree.index_of(c) == 2
        assert tree.prove_inclusion(a) == tree.prove_index(1)

    def test_prove_all_scales_linearly(self) -> None:
        """Test proving every leaf does not rescan the leaves per proof."""

        def prove_all(count: int) -> float:
            leaves = [make_leaf(i) for i in range(count)]
            tree = MerkleTree.build(leaves)
            start = time.perf_counter()
            for leaf in leaves:
                tree.prove_inclusion(leaf)
            return time.perf_counter() - start

        small = prove_all(4000)
        large = prove_all(32000)

        # 8x the leaves: about 10x when linear, 64x when quadratic
        assert large < max(small, 0.01) * 32

    def test_leaf_not_found(self) -> None:
        """Test proof for an absent leaf raises."""
        tree = MerkleTree.build([make_leaf(0), make_leaf(1)])

        with pytest.raises(LeafNotFoundError):
            tree.prove_inclusion(make_leaf(2))

    def test_prove_index_out_of_bounds(self) -> None:
        """Test that out-of-bounds proof request raises."""
        tree = MerkleTree.build([make_leaf(0), make_leaf(1)])

        with pytest.raises(IndexError):
            tree.prove_index(5)

        with pytest.raises(IndexError):
            tree.prove_index(-1)


class TestProofVerification:
    """Tests for proof verification."""

    @pytest.mark.parametrize("options", ALL_OPTIONS)
    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 6, 7, 8, 9, 16, 17, 33])
    def test_every_proof_verifies(self, options: TreeOptions, count: int) -> None:
        """Test every leaf's proof verifies for every size and policy."""
        leaves = [make_leaf(i) for i in range(count)]
        tree = MerkleTree.build(leaves, options)

        for leaf in leaves:
            proof = tree.prove_inclusion(leaf)
            assert tree.verify(leaf, proof), f"Proof failed for {count} leaves with {options}"

            index = tree.index_of(leaf)
            assert verify_proof(
                tree.root, leaf, proof, options, leaf_index=index, leaf_count=tree.leaf_count
            )

    @pytest.mark.parametrize("count", [1, 2, 3, 5, 8, 13])
    def test_sorted_pairs_verify_without_position(self, count: int) -> None:
        """Test sorted-pair proofs need only root, leaf and proof."""
        leaves = [make_leaf(i) for i in range(count)]
        tree = MerkleTree.build(leaves, SORTED)

        for leaf in leaves:
            assert verify_proof(tree.root, leaf, tree.prove_inclusion(leaf), SORTED)

    def test_unsorted_leftmost_leaf_without_position(self) -> None:
        """Test the leftmost leaf is always a left child."""
        leaves = [make_leaf(i) for i in range(5)]
        tree = MerkleTree.build(leaves)

        assert verify_proof(tree.root, leaves[0], tree.prove_inclusion(leaves[0]))

    def test_unsorted_right_child_needs_position(self) -> None:
        """Test positional hashing without a position fails for right children."""
        leaves = [make_leaf(i) for i in range(2)]
        tree = MerkleTree.build(leaves)
        proof = tree.prove_inclusion(leaves[1])

        assert not verify_proof(tree.root, leaves[1], proof)
        assert verify_proof(tree.root, leaves[1], proof, leaf_index=1, leaf_count=2)

    @pytest.mark.parametrize("options", ALL_OPTIONS)
    def test_tampered_leaf_fails(self, options: TreeOptions) -> None:
        """Test that a flipped leaf bit fails verification."""
        leaves = [make_leaf(i) for i in range(6)]
        tree = MerkleTree.build(leaves, options)

        for bit in (0, 100, 255):
            leaf = leaves[3]
            assert not tree.verify(flip_bit(leaf, bit), tree.prove_inclusion(leaf))
            assert not verify_proof(
                tree.root,
                flip_bit(leaf, bit),
                tree.prove_inclusion(leaf),
                options,
                leaf_index=tree.index_of(leaf),
                leaf_count=tree.leaf_count,
            )

    @pytest.mark.parametrize("options", ALL_OPTIONS)
    def test_tampered_proof_fails(self, options: TreeOptions) -> None:
        """Test that a flipped proof bit fails verification."""
        leaves = [make_leaf(i) for i in range(6)]
        tree = MerkleTree.build(leaves, options)
        leaf = leaves[2]
        proof = tree.prove_inclusion(leaf)

        for i in range(len(proof)):
            tampered = list(proof)
            tampered[i] = flip_bit(tampered[i], 7)
            assert not tree.verify(leaf, tampered)

    @pytest.mark.parametrize("options", ALL_OPTIONS)
    def test_tampered_root_fails(self, options: TreeOptions) -> None:
        """Test that a flipped root bit fails verification."""
        leaves = [make_leaf(i) for i in range(6)]
        tree = MerkleTree.build(leaves, options)
        leaf = leaves[4]

        assert not verify_proof(
            flip_bit(tree.root, 42),
            leaf,
            tree.prove_inclusion(leaf),
            options,
            leaf_index=tree.index_of(leaf),
            leaf_count=tree.leaf_count,
        )

    def test_wrong_proof_length_fails(self) -> None:
        """Test proofs that are too short or too long for the position."""
        leaves = [make_leaf(i) for i in range(4)]
        tree = MerkleTree.build(leaves)
        proof = tree.prove_inclusion(leaves[1])

        assert not verify_proof(tree.root, leaves[1], proof[:1], leaf_index=1, leaf_count=4)
        assert not verify_proof(tree.root, leaves[1], proof + [leaves[0]], leaf_index=1, leaf_count=4)
        assert not verify_proof(tree.root, leaves[1], proof, leaf_index=4, leaf_count=4)

    def test_absent_leaf_fails(self) -> None:
        """Test verify on the tree returns False for an absent leaf."""
        tree = MerkleTree.build([make_leaf(0), make_leaf(1)])
        assert not tree.verify(make_leaf(9), [make_leaf(0)])

    def test_compute_root_from_proof(self) -> None:
        """Test computing root from proof."""
        leaves = [make_leaf(i) for i in range(4)]
        tree = MerkleTree.build(leaves, SORTED)

        computed = compute_root_from_proof(leaves[2], tree.prove_inclusion(leaves[2]), sorted_pairs=True)
        assert computed == tree.root
