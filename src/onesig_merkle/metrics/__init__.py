"""
OneSig Merkle Service - Metrics Module

Prometheus metrics for leaf encoding, tree building and proof verification.
"""

from onesig_merkle.metrics.merkle_metrics import (
    MerkleMetrics,
    get_merkle_metrics,
)

__all__ = [
    "MerkleMetrics",
    "get_merkle_metrics",
]
