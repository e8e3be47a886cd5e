"""
Pytest configuration and shared fixtures for OneSig Merkle tests.
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from onesig_merkle.crypto.abi import Call
from onesig_merkle.crypto.hashing import keccak256
from onesig_merkle.crypto.leaf import LeafRecord
from onesig_merkle.main import app
from onesig_merkle.metrics.merkle_metrics import MerkleMetrics
from onesig_merkle.services.merkle_service import MerkleService

TARGET_ADDRESS = "0x000000000000000000000000000000000000aa"
CALL_TO = "0x00000000000000000000000000000000000bb"


def make_leaf(i: int) -> bytes:
    """Deterministic 32-byte test leaf."""
    return keccak256(i.to_bytes(32, "big"))


@pytest.fixture
def sample_record() -> LeafRecord:
    """The reference scenario record."""
    return LeafRecord(
        one_sig_id="1",
        nonce="0",
        target_address=TARGET_ADDRESS,
        calls=(Call(to=CALL_TO, value="0", data="0x"),),
    )


@pytest.fixture
def sample_leaf_json() -> dict:
    """The reference scenario record as JSON input."""
    return {
        "oneSigId": "1",
        "nonce": "0",
        "targetOneSigAddress": TARGET_ADDRESS,
        "calls": [{"to": CALL_TO, "value": "0", "data": "0x"}],
    }


@pytest.fixture
def metrics() -> MerkleMetrics:
    """Metrics bound to an isolated registry."""
    return MerkleMetrics(registry=CollectorRegistry())


@pytest.fixture
def merkle_service(metrics: MerkleMetrics) -> MerkleService:
    """Create a Merkle service for testing."""
    return MerkleService(metrics=metrics)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """HTTP client bound to the application."""
    with TestClient(app) as test_client:
        yield test_client
