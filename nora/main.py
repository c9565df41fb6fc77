"""
Nora Lesson Content Service

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nora.api.middleware.request_context import RequestContextMiddleware
from nora.api.v1 import router as api_v1_router
from nora.config import get_settings
from nora.database import close_db, init_db, session_scope
from nora.engines.content.repositories import KeywordRepository
from nora.errors import NotFoundError, ParseError, StructuralError
from nora.logging_config import configure_logging, get_logger
from nora.pedagogy.keyword_matcher import KeywordIndexHolder
from nora.schemas.common import ErrorResponse, HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Runs startup and shutdown tasks.
    """
    # Configure logging first
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    # Startup
    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    async with session_scope() as session:
        repository = KeywordRepository(session)
        stamp = await repository.fingerprint()
        keywords = await repository.list_all()
    app.state.keyword_index.rebuild(keywords, stamp=stamp)

    yield

    # Shutdown
    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.project_name,
    description="""
    Nora Lesson Content Service

    Serves the daily parent-coaching lessons and the keyword glossary.

    ## Features

    - **Lessons**: Ordered daily lessons with content cards and a closing quiz
    - **Unlocking**: A lesson opens once its prerequisite lessons are completed
    - **Keywords**: Glossary terms detected in lesson text, longest match first
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)
app.state.keyword_index = KeywordIndexHolder()


# Middleware order: add_middleware stacks innermost-first, so LAST added = OUTERMOST.
_cors_origins = [
    "http://localhost:3000",
    "http://localhost:8081",  # Expo dev server
    "http://localhost:19006",
    "http://127.0.0.1:3000",
]

app.add_middleware(RequestContextMiddleware)

# CORS last = outermost = wraps everything; every response gets CORS headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
    headers = {}
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers["X-Request-ID"] = req_id
        if status_code >= 500:
            content["request_id"] = req_id
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    body = ErrorResponse(
        detail=str(exc),
        code="not_found",
        identifiers=[exc.identifier] if exc.identifier else [],
    )
    return _error_response(request, status.HTTP_404_NOT_FOUND, body.model_dump())


@app.exception_handler(StructuralError)
async def structural_error_handler(request: Request, exc: StructuralError):
    logger.warning("Structural error: %s", exc, extra={"identifiers": exc.identifiers})
    body = ErrorResponse(detail=str(exc), code="structural_error", identifiers=exc.identifiers)
    return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, body.model_dump())


@app.exception_handler(ParseError)
async def parse_error_handler(request: Request, exc: ParseError):
    body = ErrorResponse(detail=str(exc), code="parse_error")
    return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, body.model_dump())


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(request, exc.status_code, {"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"detail": "Validation error", "errors": errors},
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__}
    else:
        content = {"detail": "Internal server error"}
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, content)


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Check application health."""
    return HealthResponse(
        status="ok",
        version=settings.version,
        database="connected",
        keywords_indexed=len(request.app.state.keyword_index.current()),
    )


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {
            "v1": settings.api_v1_prefix,
        },
    }


# Mount API v1 routes
app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


# Main entry point for development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "nora.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
