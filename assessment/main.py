"""
FastAPI Application Entry Point

This module initializes the FastAPI application with:
- CORS configuration
- Grading components built once per process (lifespan)
- Route registration
- Health check endpoints
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from assessment.core.config import settings
from assessment.db.database import engine, read_engine, ReadSessionLocal, check_db_connection
from assessment.db.redis import check_redis_connection, close_redis_pool
from assessment.db.transaction import TransactionManager
from assessment.storage import create_storage_backend
from assessment.ai.grader import build_grading_adapter
from assessment.services.reference_store import GradingReferenceStore
from assessment.services.attempt_service import AttemptGradingEngine
from assessment.api.v1.endpoints.attempts import submission_error_response
from assessment.core.exceptions import InvalidSubmission
from assessment.api.v1.router import api_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# ============================================================
# Application Lifespan Events
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Startup:
    - Check database connection
    - Build storage, AI grading adapter and grading engine

    Shutdown:
    - Let abandoned submissions finish
    - Close Redis and database pools
    """
    # ========== STARTUP ==========
    logger.info(f"Starting {settings.PROJECT_NAME}...")
    logger.info(f"Debug mode: {settings.DEBUG}")

    try:
        db_healthy = await check_db_connection()
        if db_healthy:
            logger.info("Database connection established successfully")
        else:
            logger.warning("Database connection check failed")
    except Exception as e:
        logger.error(f"Database connection error on startup: {e}")

    storage = create_storage_backend()
    adapter = build_grading_adapter(settings, storage)

    app.state.grading_engine = AttemptGradingEngine(
        transactions=TransactionManager(
            engine,
            default_timeout=settings.SUBMISSION_ACQUIRE_TIMEOUT_SECONDS,
        ),
        references=GradingReferenceStore(ReadSessionLocal),
        adapter=adapter,
    )
    logger.info(f"Grading engine ready ({type(adapter).__name__})")

    yield  # Application runs here

    # ========== SHUTDOWN ==========
    logger.info(f"Shutting down {settings.PROJECT_NAME}...")

    await app.state.grading_engine.drain()
    await close_redis_pool()
    await engine.dispose()
    await read_engine.dispose()

    logger.info("Shutdown complete")


# ============================================================
# Create FastAPI Application
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    Quiz Attempt Grading API

    Features:
    - Quiz submission with all-or-nothing grading
    - Multiple choice and fill-in-the-blank scoring
    - AI grading of essays and speaking answers
    - Attempt history
    """,
    version="1.0.0",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ----------------------------------------------------
# Middleware Configuration
# ----------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# ----------------------------------------------------
# Health Check Endpoints
# ----------------------------------------------------
@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.PROJECT_NAME,
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs" if settings.DEBUG else "disabled"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for monitoring.

    Checks:
    - Database connectivity
    - Redis connectivity (reconciliation worker)
    """
    try:
        db_healthy = await check_db_connection()
        redis_healthy = await check_redis_connection()

        status = "healthy"
        if not db_healthy or not redis_healthy:
            status = "degraded"

        return {
            "status": status,
            "database": "connected" if db_healthy else "disconnected",
            "redis": "connected" if redis_healthy else "disconnected",
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": str(e)
            }
        )

# ============================================================
# Include API Router
# ============================================================
app.include_router(
    api_router,
    prefix=settings.API_V1_PREFIX
)


# ----------------------------------------------------
# Exception Handlers
# ----------------------------------------------------
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed submission bodies get the same 400 as any invalid submission."""
    if request.method == "POST" and request.url.path.endswith("/submit"):
        logger.warning(f"Malformed submission body: {exc.errors()}")
        return submission_error_response(InvalidSubmission("Malformed request body"))
    return await request_validation_exception_handler(request, exc)


@app.exception_handler(404)
async def not_found_handler(request, exc):
    """Handle 404 errors."""
    return JSONResponse(
        status_code=404,
        content={"detail": getattr(exc, "detail", None) or "Not found"}
    )


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """Handle 500 errors."""
    logger.error(f"Internal server error: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )
