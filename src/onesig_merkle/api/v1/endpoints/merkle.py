"""
OneSig Merkle API - Merkle Endpoints

- POST /merkle/encode: Encode OneSig leaves and build the Merkle tree
- POST /merkle/tree: Build the Merkle tree from pre-encoded leaves
- POST /merkle/verify: Verify an inclusion proof
"""

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, status

from onesig_merkle.core.config import settings
from onesig_merkle.crypto.errors import (
    EmptyInputError,
    LeafNotFoundError,
    OneSigMerkleError,
    UnsupportedVersionError,
    ValidationError,
)
from onesig_merkle.crypto.merkle import TreeOptions
from onesig_merkle.models import (
    EncodedLeavesInput,
    LeavesInput,
    MerkleResult,
    VerifyInput,
    VerifyResult,
)
from onesig_merkle.services.merkle_service import MerkleService

logger = structlog.get_logger(__name__)
router = APIRouter()


def _get_service(req: Request) -> MerkleService:
    service = getattr(req.app.state, "merkle_service", None)
    if service is None:
        service = MerkleService()
        req.app.state.merkle_service = service
    return service


def _to_http_error(error: OneSigMerkleError) -> HTTPException:
    """Map core errors to HTTP responses."""
    if isinstance(error, LeafNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, (UnsupportedVersionError, EmptyInputError)):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, ValidationError):
        code = status.HTTP_422_UNPROCESSABLE_CONTENT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))


@router.post(
    "/encode",
    response_model=MerkleResult,
    summary="Encode leaves and build Merkle tree",
    description="Encode OneSig leaves at the given version and return the Merkle root with a proof per leaf.",
    responses={
        400: {"description": "Unsupported version or no leaves"},
        422: {"description": "Invalid leaf record"},
    },
)
def encode_leaves(
    request: LeavesInput,
    req: Request,
    version: int = Query(default=settings.LEAF_ENCODING_VERSION, description="Leaf encoding version"),
    sorted_pairs: bool = Query(default=settings.ENCODE_SORTED_PAIRS, alias="sortedPairs"),
    sort_leaves: bool = Query(default=settings.ENCODE_SORT_LEAVES, alias="sortLeaves"),
) -> MerkleResult:
    """Encode leaves and generate the Merkle tree."""
    logger.info(
        "Encode requested",
        leaf_count=len(request.leaves),
        version=version,
        sorted_pairs=sorted_pairs,
        sort_leaves=sort_leaves,
    )

    try:
        return _get_service(req).generate_from_records(
            request.leaves,
            version=version,
            options=TreeOptions(sorted_pairs=sorted_pairs, sort_leaves=sort_leaves),
        )
    except OneSigMerkleError as e:
        logger.warning("Encode failed", error=str(e))
        raise _to_http_error(e) from e


@router.post(
    "/tree",
    response_model=MerkleResult,
    summary="Build Merkle tree from encoded leaves",
    description="Build the Merkle tree from pre-encoded 32-byte leaves.",
    responses={
        400: {"description": "No leaves"},
        422: {"description": "Invalid leaf"},
    },
)
def build_tree(
    request: EncodedLeavesInput,
    req: Request,
    sorted_pairs: bool = Query(default=settings.MERKLE_SORTED_PAIRS, alias="sortedPairs"),
    sort_leaves: bool = Query(default=settings.MERKLE_SORT_LEAVES, alias="sortLeaves"),
) -> MerkleResult:
    """Generate the Merkle tree from encoded leaves."""
    try:
        return _get_service(req).generate_from_encoded_leaves(
            request.encoded_leaves,
            options=TreeOptions(sorted_pairs=sorted_pairs, sort_leaves=sort_leaves),
        )
    except OneSigMerkleError as e:
        logger.warning("Tree build failed", error=str(e))
        raise _to_http_error(e) from e


@router.post(
    "/verify",
    response_model=VerifyResult,
    summary="Verify inclusion proof",
    description="Verify that a leaf and proof reconstruct the given Merkle root.",
)
def verify_inclusion(request: VerifyInput, req: Request) -> VerifyResult:
    """Verify an inclusion proof."""
    try:
        valid = _get_service(req).verify_proof_hex(
            request.root,
            request.leaf,
            request.proof,
            TreeOptions(sorted_pairs=request.sorted_pairs),
            leaf_index=request.leaf_index,
            leaf_count=request.leaf_count,
        )
    except OneSigMerkleError as e:
        raise _to_http_error(e) from e

    return VerifyResult(valid=valid)
