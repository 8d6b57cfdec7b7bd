"""
Bank Service - Main Application
===============================

FastAPI application for verifying salary threshold proofs and making
loan decisions.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, status
from fastapi.responses import JSONResponse

from services.bank.client import NBFCClient
from services.bank.routes import decisions
from services.bank.service import get_bank_service
from shared.config import settings
from shared.logging import get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse
from shared.zk import get_comparator_circuit


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="bank",
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "bank_service_starting",
        environment=settings.environment.value,
        port=settings.ports.bank,
        nbfc_url=settings.nbfc_url,
    )

    circuit = get_comparator_circuit(settings.zk.bit_width)
    logger.info(
        "comparator_circuit_ready",
        bit_width=circuit.bit_width,
        gates=circuit.size,
        repetitions=settings.zk.repetitions,
    )

    yield

    logger.info("bank_service_shutting_down")


# Create FastAPI application
app = FastAPI(
    title="zkcredit Bank Service",
    description="Loan decisions from zero-knowledge salary threshold proofs",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Reports degraded when the NBFC cannot be reached, since no decision
    can then be approved.
    """
    async with NBFCClient() as client:
        nbfc_health = await client.health_check()

    components: dict[str, dict[str, Any]] = {
        "nbfc": nbfc_health,
        "nonces": {"status": "healthy", "consumed": len(get_bank_service().nonces)},
    }
    all_healthy = all(c.get("status") == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="bank",
        version="0.1.0",
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "zkcredit Bank Service",
        "version": "0.1.0",
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    decisions.router,
    prefix="/api/v1/loan-decisions",
    tags=["Loan Decisions"],
)


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Any, exc: HTTPException) -> Any:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail), status_code=exc.status_code).model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Any, exc: Exception) -> Any:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="Internal server error", status_code=500).model_dump(mode="json"),
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.bank.main:app",
        host="0.0.0.0",
        port=settings.ports.bank,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
