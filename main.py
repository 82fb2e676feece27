import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from we3vision import __version__
from we3vision.core.config import settings
from we3vision.core.database import init_db
from we3vision.core.exceptions import register_exception_handlers
from we3vision.core.logging_config import log_requests, setup_logging
from we3vision.core.rate_limiter import limit_requests
from we3vision.api.endpoints import assets, auth, blog, health, job, media, users

# Configure logging
setup_logging(log_level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS or settings.is_production)
logger = logging.getLogger(__name__)


UPLOAD_MOUNTS = ("/uploads", "/media", "/images")


def add_static_headers(response):
    """Uploaded images may be embedded from any origin."""
    response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"
    response.headers["Access-Control-Allow-Origin"] = "*"
    if settings.UPLOADS_CACHE_SECONDS:
        response.headers["Cache-Control"] = f"public, max-age={settings.UPLOADS_CACHE_SECONDS}"
    return response


class UploadStaticFiles(StaticFiles):
    """Static files for the upload directory."""

    def file_response(self, *args, **kwargs):
        return add_static_headers(super().file_response(*args, **kwargs))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting up {settings.PROJECT_NAME} ({settings.ENVIRONMENT})...")
    init_db()
    if not settings.USE_S3:
        os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
        logger.info(f"Serving uploads from {os.path.abspath(settings.UPLOAD_DIR)}")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.PROJECT_NAME}...")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=__version__,
    description="Blog, careers board, media library and site assets for We3Vision",
    lifespan=lifespan
)

# Rate limiting runs inside CORS so throttled responses still carry CORS headers
app.middleware("http")(limit_requests)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_requests)

register_exception_handlers(app)

# Include routers
app.include_router(auth.router, prefix=settings.API_PREFIX)
app.include_router(users.router, prefix=settings.API_PREFIX)
app.include_router(blog.router, prefix=settings.API_PREFIX)
app.include_router(job.router, prefix=settings.API_PREFIX)
app.include_router(media.router, prefix=settings.API_PREFIX)
app.include_router(assets.router, prefix=settings.API_PREFIX)
app.include_router(health.router, prefix=settings.API_PREFIX)

# Uploaded images (local storage only; S3 objects are served by S3).
# The extra prefixes keep URLs stored under older paths working.
for mount_path in UPLOAD_MOUNTS:
    app.mount(mount_path, UploadStaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name=mount_path.strip("/"))


@app.get("/files/{name}", include_in_schema=False)
async def serve_file(name: str):
    """Serve an uploaded file by bare filename."""
    path = os.path.join(settings.UPLOAD_DIR, name)
    if os.path.basename(name) != name or not os.path.isfile(path):
        raise StarletteHTTPException(status_code=404)
    return add_static_headers(FileResponse(path))


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Root endpoint - liveness check"""
    return f"{settings.PROJECT_NAME} is running"


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
        log_level=settings.LOG_LEVEL.lower()
    )
