"""FastAPI application entry point"""

import logging
import os
import sys
from typing import List, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from directory_api.api import events, imports, places, search, submissions
from directory_api.core.config import Settings, settings as default_settings
from directory_api.core.database import Database
from directory_api.core.google_places import GooglePlacesClient
from directory_api.core.memory_store import MemoryDatabase
from directory_api.core.place_importer import PlaceImporter
from directory_api.core.state_machine import ListingDefaults
from directory_api.core.submissions import SubmissionService
from directory_api.models.errors import ApplicationError, ErrorCode

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure logging with force=True to override any existing config"""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)


def build_database(settings: Settings):
    if settings.database_backend == "memory":
        return MemoryDatabase()
    return Database(
        settings.mongodb_uri,
        settings.mongodb_db,
        max_pool_size=settings.mongodb_max_pool_size,
        server_selection_timeout_ms=settings.mongodb_server_selection_timeout_ms,
    )


def _field_names(exc: RequestValidationError) -> List[str]:
    names = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        names.append(".".join(loc) or "body")
    return names


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(ApplicationError)
    async def application_error_handler(request: Request, exc: ApplicationError):
        if exc.http_status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.code.value} - {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.http_status} {exc.code.value}")
        return JSONResponse(status_code=exc.http_status, content=exc.model_dump())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = _field_names(exc)
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": f"Invalid request: {', '.join(fields)}",
                "code": ErrorCode.VALIDATION_ERROR.value,
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "code": ErrorCode.INTERNAL_ERROR.value,
            },
        )


def create_app(
    settings: Optional[Settings] = None,
    google_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the application. The datastore and Google client are constructed
    here, opened on startup and closed on shutdown.
    """
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
    )
    app.state.settings = settings
    app.state.database = build_database(settings)
    app.state.google_client = GooglePlacesClient(
        settings.google_maps_api_key,
        base_url=settings.google_places_base_url,
        timeout=settings.google_request_timeout,
        max_retries=settings.google_max_retries,
        transport=google_transport,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.on_event("startup")
    async def startup_event():
        """Open the datastore and wire the services"""
        logger.info("=" * 60)
        logger.info("DIRECTORY API STARTING")
        logger.info("=" * 60)
        logger.info(f"PID: {os.getpid()}")
        logger.info(f"Environment: {settings.environment}")
        logger.info(f"Datastore: {settings.database_backend}")
        logger.info(f"Google Places: {'configured' if settings.google_configured else 'not configured'}")
        logger.info("=" * 60)

        stores = await app.state.database.connect()
        app.state.stores = stores
        app.state.submission_service = SubmissionService(stores, ListingDefaults.from_settings(settings))
        app.state.place_importer = PlaceImporter(
            app.state.google_client, stores.places, settings.placeholder_image
        )
        logger.info("✓ Datastore connected")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown"""
        logger.info("Shutting down directory API...")
        try:
            await app.state.google_client.close()
        except Exception as e:
            logger.warning(f"Error closing Google Places client: {e}")
        try:
            await app.state.database.close()
        except Exception as e:
            logger.warning(f"Error closing datastore: {e}")
        logger.info("Directory API shutdown complete")

    @app.get("/")
    async def root():
        """Health check endpoint"""
        return {"status": "healthy", "version": settings.api_version}

    @app.get("/health")
    async def health():
        """Health check for monitoring"""
        return {"status": "healthy"}

    # Register API routes
    app.include_router(submissions.router, prefix="/api", tags=["submissions"])
    app.include_router(imports.router, prefix="/api", tags=["import"])
    app.include_router(places.router, prefix="/api", tags=["places"])
    app.include_router(events.router, prefix="/api", tags=["events"])
    app.include_router(search.router, prefix="/api", tags=["search"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="127.0.0.1",
        port=8000,
        log_level=default_settings.log_level.lower(),
    )
