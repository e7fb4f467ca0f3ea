import logging
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from pymongo.database import Database

# Import logging configuration
from logging_config import setup_logging

# Import configuration
from config import Settings, settings

# Set up logging to file and console
setup_logging(log_dir=settings.LOG_DIR, log_file=settings.LOG_FILE, log_level=settings.LOG_LEVEL)

# Import database connection
from database.connection import MongoDB, ensure_indexes

# Import routes
from routes.auth import router as auth_router
from routes.collections import router as collections_router
from routes.favorites import router as favorites_router
from routes.media import router as media_router
from routes.sounds import router as sounds_router

from services.container import ServiceContainer
from services.errors import AuthError, ServiceError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    """Every error body is a single message field"""
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def validation_message(exc: RequestValidationError) -> str:
    """First request validation error as one readable line"""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc.message}")
        return error_response(exc.status_code, exc.message, headers)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(400, validation_message(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unexpected error on {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}", exc_info=True)
        return error_response(500, "Internal server error")


def create_app(
    app_settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    storage=None,
    proxy_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Settings to use (default: the process-wide settings)
        database: Database handle; a MongoDB connection is opened when omitted
        storage: Object storage client; an S3Client is built when omitted
        proxy_transport: httpx transport for proxied upstream requests
    """
    app_settings = app_settings or settings

    mongodb = None
    if database is None:
        mongodb = MongoDB(app_settings)
        database = mongodb.get_database()

    # Create FastAPI app
    app = FastAPI(
        title=app_settings.API_TITLE,
        description="Sound effect sharing API with user authentication",
        version=app_settings.API_VERSION,
    )
    app.state.settings = app_settings
    app.state.services = ServiceContainer(app_settings, database, storage=storage, proxy_transport=proxy_transport)

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(sounds_router)
    app.include_router(collections_router)
    app.include_router(favorites_router)
    app.include_router(media_router)

    @app.on_event("startup")
    async def startup_event():
        # Initialize MongoDB connection
        if mongodb is not None:
            logging.info("Connecting to MongoDB...")
            if mongodb.connect():
                logging.info("MongoDB connected successfully")
            else:
                logging.error("Failed to connect to MongoDB")
                return

        try:
            ensure_indexes(database)
        except Exception as e:
            logging.error(f"Error creating MongoDB indexes: {str(e)}")

    @app.on_event("shutdown")
    async def shutdown_event():
        if mongodb is not None:
            mongodb.disconnect()

    @app.get("/health")
    async def health_check():
        """Health check endpoint to verify the API is running"""
        return {
            "status": "ok",
            "database_connected": mongodb.is_connected() if mongodb is not None else True,
            "storage_configured": app_settings.storage_configured,
        }

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Serve the front-end, mounted last so the API routes win
    if app_settings.STATIC_DIR.is_dir():
        app.mount("/", StaticFiles(directory=str(app_settings.STATIC_DIR), html=True), name="static")
    else:
        logging.info(f"Static directory {app_settings.STATIC_DIR} not found; not serving a front-end")

    return app


app = create_app()


# Run the application
if __name__ == "__main__":
    uvicorn.run("app:app", host="0.0.0.0", port=settings.PORT, reload=False)
