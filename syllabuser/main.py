"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from syllabuser.api.v1.router import api_router
from syllabuser.core.config import settings
from syllabuser.core.database import SessionLocal, engine
from syllabuser.core.exceptions import AppException
from syllabuser.core.realtime import ChangeFeed
from syllabuser.core.scheduler import start_scheduler, stop_scheduler
from syllabuser.middleware.logging import RequestLoggingMiddleware
from syllabuser.services.documents import SqlDocumentStore
from syllabuser.services.exam_loader import ExamDataLoader
from syllabuser.services.exam_session import ExamSessionRegistry

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Suppress noisy SQLAlchemy and scheduler logs
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    feed = ChangeFeed()
    store = SqlDocumentStore(SessionLocal, feed)
    registry = ExamSessionRegistry(ExamDataLoader(store), store)
    app.state.feed = feed
    app.state.store = store
    app.state.registry = registry

    if settings.SCHEDULER_ENABLED:
        start_scheduler(registry)

    yield

    logger.info("Shutting down application")
    stop_scheduler()
    await registry.shutdown()
    engine.dispose()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
Syllabuser Baire API - exam preparation platform.

## Features

- **Courses**: Catalogue, categories and enrollment
- **Timed Exams**: Server-side countdown, single submission, negative marking
- **Results**: Review, admin ranking and Excel export
- **Routines**: Per-course study schedule
- **Realtime**: Live admin views over WebSocket

## Authentication

All endpoints except registration, login and the public catalogue require an
`Authorization: Bearer <token>` header.

## Error Handling

All errors follow a standard format:
```json
{
  "success": false,
  "error": {
    "code": "ERROR_CODE",
    "message": "Human readable message",
    "details": {}
  }
}
```
        """,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middlewares
    app.add_middleware(RequestLoggingMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "details": {"errors": jsonable_errors(exc)},
                },
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An internal server error occurred",
                    "details": {},
                },
            },
        )

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    # Validator errors may carry exception objects in ``ctx``
    return jsonable_encoder(exc.errors(), custom_encoder={Exception: str})


# Create app instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "syllabuser.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
