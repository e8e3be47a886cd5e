"""
OneSig Merkle API v1

Endpoints:
- POST /merkle/encode - Encode leaves and build Merkle tree
- POST /merkle/tree - Build Merkle tree from encoded leaves
- POST /merkle/verify - Verify inclusion proof
"""

from fastapi import APIRouter

from onesig_merkle.api.v1.endpoints import merkle

router = APIRouter()
router.include_router(merkle.router, prefix="/merkle", tags=["Merkle"])
