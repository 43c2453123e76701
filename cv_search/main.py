"""FastAPI application bootstrap."""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from cv_search.config import settings
from cv_search.api.routes import router
from cv_search.exceptions import EmptyQueryError, UpstreamUnavailableError
from cv_search.services.embedding_service import EmbeddingService
from cv_search.services.vector_db_service import get_vector_db_service
from cv_search.utils.logging import setup_logging, get_logger

# Initialize logging
setup_logging()
logger = get_logger(__name__)

# Initialize Sentry if DSN provided
if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        integrations=[
            FastApiIntegration(),
        ],
        traces_sample_rate=0.1,
        environment="production",
    )
    logger.info("Sentry initialized")


# Startup/shutdown lifecycle
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting CV Search application")

    try:
        vector_db = await get_vector_db_service()
        logger.info("Vector database initialized")

        # Stored in app state for dependency injection
        app.state.vector_db = vector_db
        app.state.embedding_service = EmbeddingService()

        logger.info("Application startup complete")

    except Exception as e:
        logger.error(f"Failed to start application: {e}", extra={"error": str(e)})
        raise

    yield

    logger.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="CV Search API",
    description="Semantic CV search with skill, location and education filtering",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EmptyQueryError)
async def empty_query_exception_handler(request: Request, exc: EmptyQueryError):
    """Blank search query."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Bad request",
            "code": exc.code,
            "message": str(exc)
        }
    )


@app.exception_handler(UpstreamUnavailableError)
async def upstream_exception_handler(request: Request, exc: UpstreamUnavailableError):
    """Embedding service or vector index unavailable."""
    logger.error(
        f"Upstream unavailable: {exc}",
        extra={
            "service": exc.service,
            "path": request.url.path,
        }
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "Service unavailable",
            "code": exc.code,
            "message": str(exc)
        }
    )


# Request validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation error",
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_errors(exc)
        }
    )


def jsonable_errors(exc: RequestValidationError):
    """Validation errors with the (possibly non-serializable) ctx values stringified."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(
        f"Unhandled exception: {exc}",
        extra={
            "error": str(exc),
            "path": request.url.path,
            "method": request.method
        },
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred"
        }
    )


# Include routers
app.include_router(router, prefix="/api/v1", tags=["CV Search"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "CV Search",
        "version": "1.0.0",
        "status": "running"
    }
