"""
OneSig Merkle Service - Merkle Metrics

Prometheus metrics for leaf encoding and Merkle tree operations.

Metrics Categories:
- Leaf encoding
- Merkle tree building
- Proof generation and verification
"""

import time

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, Info


class MerkleMetrics:
    """
    Centralized metrics for the OneSig Merkle service.

    Provides visibility into:
    - Leaf encoding volume and failures
    - Tree build times and sizes
    - Proof generation and verification results
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize all Merkle metrics."""
        self._registry = registry
        self._init_encoding_metrics()
        self._init_tree_metrics()
        self._init_proof_metrics()
        self._init_info_metrics()

    def _init_encoding_metrics(self) -> None:
        """Initialize leaf encoding metrics."""
        self.leaves_encoded = Counter(
            "onesig_merkle_leaves_encoded_total",
            "Total leaves encoded",
            ["version"],
            registry=self._registry,
        )

        self.encoding_failures = Counter(
            "onesig_merkle_encoding_failures_total",
            "Leaf encoding failures",
            ["reason"],
            registry=self._registry,
        )

    def _init_tree_metrics(self) -> None:
        """Initialize Merkle tree metrics."""
        self.tree_build_duration = Histogram(
            "onesig_merkle_tree_build_duration_seconds",
            "Merkle tree build time",
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=self._registry,
        )

        self.tree_size = Histogram(
            "onesig_merkle_tree_size",
            "Number of leaves in Merkle tree",
            buckets=[1, 2, 10, 50, 100, 500, 1000, 10000, 100000],
            registry=self._registry,
        )

        self.proofs_per_tree = Histogram(
            "onesig_merkle_proofs_per_tree",
            "Number of proofs generated per tree",
            buckets=[1, 2, 10, 50, 100, 500, 1000, 10000, 100000],
            registry=self._registry,
        )

    def _init_proof_metrics(self) -> None:
        """Initialize proof metrics."""
        self.proof_generation = Histogram(
            "onesig_merkle_proof_duration_seconds",
            "Merkle proof generation time for a whole tree",
            buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.1, 1.0],
            registry=self._registry,
        )

        self.verifications = Counter(
            "onesig_merkle_verifications_total",
            "Merkle proof verifications",
            ["result"],
            registry=self._registry,
        )

    def _init_info_metrics(self) -> None:
        """Initialize info metrics."""
        self.service_info = Info(
            "onesig_merkle_service",
            "OneSig Merkle service information",
            registry=self._registry,
        )

    # Convenience methods

    def record_leaves_encoded(self, count: int, version: int) -> None:
        """Record successfully encoded leaves."""
        self.leaves_encoded.labels(version=str(version)).inc(count)

    def record_encoding_failure(self, reason: str) -> None:
        """Record a failed leaf encoding."""
        self.encoding_failures.labels(reason=reason).inc()

    def record_tree_build(self, duration: float, tree_size: int) -> None:
        """Record Merkle tree build."""
        self.tree_build_duration.observe(duration)
        self.tree_size.observe(tree_size)

    def record_proofs(self, duration: float, count: int) -> None:
        """Record proof generation for a tree."""
        self.proof_generation.observe(duration)
        self.proofs_per_tree.observe(count)

    def record_verification(self, valid: bool) -> None:
        """Record Merkle proof verification."""
        result = "valid" if valid else "invalid"
        self.verifications.labels(result=result).inc()

    def set_service_info(self, version: str, environment: str) -> None:
        """Set service info labels."""
        self.service_info.info({
            "version": version,
            "environment": environment,
            "started_at": str(int(time.time())),
        })


# Singleton instance
_merkle_metrics: MerkleMetrics | None = None


def get_merkle_metrics() -> MerkleMetrics:
    """Get global Merkle metrics instance."""
    global _merkle_metrics
    if _merkle_metrics is None:
        _merkle_metrics = MerkleMetrics()
    return _merkle_metrics
