"""
OneSig Merkle Service - Main Entry Point

Provides APIs for encoding OneSig leaves, building Merkle trees and
verifying inclusion proofs.
"""

import signal
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app
from starlette.responses import Response

from onesig_merkle.api.v1 import router as api_v1_router
from onesig_merkle.core.config import settings
from onesig_merkle.core.logging import setup_logging
from onesig_merkle.metrics import get_merkle_metrics
from onesig_merkle.services.merkle_service import MerkleService

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "Starting OneSig Merkle Service",
        version=settings.VERSION,
        environment=settings.ENV,
        leaf_encoding_version=settings.LEAF_ENCODING_VERSION,
    )

    merkle_metrics = get_merkle_metrics()
    merkle_metrics.set_service_info(
        version=settings.VERSION,
        environment=settings.ENV,
    )

    # Store service in app state for access in routes
    app.state.merkle_service = MerkleService(metrics=merkle_metrics)

    yield

    logger.info("OneSig Merkle Service shutdown complete")


def create_application() -> FastAPI:
    """Create FastAPI application."""
    app = FastAPI(
        title="OneSig Merkle API",
        description="Leaf encoding, Merkle root and inclusion proof service for OneSig",
        version=settings.VERSION,
        docs_url="/docs" if settings.ENV != "production" else None,
        redoc_url="/redoc" if settings.ENV != "production" else None,
        lifespan=lifespan,
    )

    # Include routers
    app.include_router(api_v1_router, prefix="/api/v1")

    # Metrics endpoint
    if settings.METRICS_ENABLED:
        app.mount("/metrics", make_asgi_app())

    @app.get("/health")
    async def health() -> dict:
        """Overall service health check."""
        return {
            "status": "healthy",
            "service": "onesig-merkle",
            "version": settings.VERSION,
        }

    @app.get("/live")
    async def live() -> Response:
        """Liveness probe for Kubernetes."""
        return Response(status_code=200, content="alive")

    @app.get("/status")
    async def status() -> dict:
        """Detailed service status."""
        return {
            "service": "onesig-merkle",
            "version": settings.VERSION,
            "environment": settings.ENV,
            "leaf_encoding_version": settings.LEAF_ENCODING_VERSION,
            "encode_defaults": {
                "sorted_pairs": settings.ENCODE_SORTED_PAIRS,
                "sort_leaves": settings.ENCODE_SORT_LEAVES,
            },
            "merkle_defaults": {
                "sorted_pairs": settings.MERKLE_SORTED_PAIRS,
                "sort_leaves": settings.MERKLE_SORT_LEAVES,
            },
            "max_leaves": settings.MAX_LEAVES,
        }

    return app


app = create_application()


def handle_signal(signum: int, frame: object) -> None:
    """Handle shutdown signals."""
    logger.info(f"Received signal {signum}, initiating shutdown")
    sys.exit(0)


def main() -> None:
    """Run the service."""
    setup_logging()
    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    logger.info(
        "Starting OneSig Merkle service",
        host=settings.HOST,
        port=settings.PORT,
    )

    uvicorn.run(
        "onesig_merkle.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()
