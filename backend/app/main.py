"""Hireline ATS application entry point"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import IntegrityError

from backend.app.core.config import settings
from backend.app.core.logging import setup_logging, get_logger
from backend.app.core.middleware import RequestIDMiddleware, LoggingMiddleware
from backend.app.core.exceptions import HirelineException

setup_logging()
logger = get_logger(__name__)

API_DESCRIPTION = """
## Hireline ATS - Resume ingestion and candidate scoring

Turns uploaded resumes into structured, validated applications and converts
approved applications into scored pipeline candidates.

### Pipeline

* **Layered extraction**: Native PDF/Word text, OCR fallback for scans, text-run recovery
* **Structuring**: Language-model extraction of contact, experience, education and skills
* **Validation**: Advisory check that a document is a genuine resume
* **Approval**: Idempotent conversion of an application into a scored, staged candidate

### Access

Every endpoint expects a bearer token issued by the identity service.
Parsing and approval are limited to the `admin` and `recruiter` roles.
"""

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=API_DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    openapi_tags=[
        {"name": "Resumes", "description": "Parse-only resume extraction"},
        {"name": "Applications", "description": "Application intake, re-parsing and approval"},
    ],
)

# Last added is outermost: request IDs are assigned before access logging runs
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(request: Request, status_code: int, error: str, details: Any = None) -> JSONResponse:
    """Uniform error body carrying the request ID"""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "details": jsonable_encoder(details or {}),
            "request_id": getattr(request.state, "request_id", "unknown"),
        }
    )


@app.exception_handler(HirelineException)
async def hireline_exception_handler(request: Request, exc: HirelineException):
    """Render domain exceptions with their own status code"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{type(exc).__name__}: {exc.message}", extra={"status_code": exc.status_code})

    return error_response(request, exc.status_code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Reject malformed bodies, forms and path parameters"""
    logger.warning(f"Request validation failed: {exc.errors()}")

    return error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", exc.errors())


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Unique and foreign-key violations that escaped the services"""
    logger.error(f"Integrity error: {exc.orig}")

    return error_response(
        request,
        status.HTTP_409_CONFLICT,
        "Database constraint violation",
        {"message": "The operation conflicts with existing data"}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last resort; internals never reach the client"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        {"message": "An unexpected error occurred"}
    )


@app.on_event("startup")
async def on_startup():
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} starting ({settings.ENVIRONMENT})")
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set; structuring, scoring and vision OCR will fail")


@app.on_event("shutdown")
async def on_shutdown():
    logger.info(f"{settings.APP_NAME} stopping")


@app.get("/")
async def root():
    """Service name and version"""
    return {"name": settings.APP_NAME, "version": settings.APP_VERSION}


@app.get("/health")
async def health_check():
    """Liveness check"""
    return {"status": "healthy"}


from backend.app.api import resumes, applications  # noqa: E402

app.include_router(resumes.router, prefix=f"{settings.API_V1_PREFIX}/resumes", tags=["Resumes"])
app.include_router(applications.router, prefix=f"{settings.API_V1_PREFIX}/applications", tags=["Applications"])
