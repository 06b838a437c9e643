"""Main FastAPI application module.

This module initializes the FastAPI application, wires the middleware
pipeline and registers all route handlers.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.logging_config import setup_logging
from config import (
    API_HOST,
    API_PORT,
    API_TITLE,
    API_VERSION,
    CORS_ALLOWED_ORIGINS,
    DEFAULT_JWT_SECRET_KEY,
    JWT_SECRET_KEY,
)
from api.routes import auth, tasks, users
from core.cache import get_response_cache
from core.database import init_db
from core.error_handlers import register_exception_handlers
from core.middleware import (
    AuthenticationMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    ResponseCacheMiddleware,
    SecurityHeadersMiddleware,
)

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(
    title=API_TITLE,
    description="REST API for user authentication, task management, and admin user control.",
    version=API_VERSION,
)

# Middleware added last runs first. Request order:
# logging -> security headers -> rate limit -> CORS -> auth -> response cache
app.add_middleware(ResponseCacheMiddleware)
app.add_middleware(AuthenticationMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

# Register route handlers
app.include_router(auth.router)
app.include_router(tasks.router)
app.include_router(users.router)


@app.on_event("startup")
def startup_tasks() -> None:
    """Create missing tables and check the cache connection."""
    init_db()
    if JWT_SECRET_KEY == DEFAULT_JWT_SECRET_KEY:
        logger.warning("JWT_SECRET_KEY is not set; using the insecure development key")
    cache = get_response_cache()
    if cache.enabled and not cache.ping():
        logger.warning("Cache backend unreachable; serving without response cache")


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links."""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status "ok".
    """
    return {"status": "ok"}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    logger.info("Starting %s on %s (docs at %s/docs)", API_TITLE, server_url, server_url)
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=True)
