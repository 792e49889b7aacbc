"""Main FastAPI application module.

This module initializes the FastAPI application and registers all route handlers.
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from core.logging_config import setup_logging
from config import (
    CORS_ALLOWED_ORIGINS,
    API_HOST,
    API_PORT,
)
from api.errors import request_validation_handler
from api.routes import apologies, auth, drive_access, profile, users
from core.dependencies import shutdown_notification_sink

APP_VERSION = "1.0.0"

# Setup logging
setup_logging()

# Initialize FastAPI application
app = FastAPI(
    title="Membership Portal API",
    description="Invitations, drive access requests and apologies for portal members.",
    version=APP_VERSION,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Malformed input is a 400 like every other validation failure
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Register route handlers
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(drive_access.router)
app.include_router(apologies.router)
app.include_router(users.router)


@app.on_event("shutdown")
def shutdown_tasks() -> None:
    """Let queued notifications go out before the process exits."""
    shutdown_notification_sink()


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links.

    Returns:
        Dictionary with API information and documentation links.
    """
    return {
        "name": "Membership Portal API",
        "version": APP_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/health",
    }


@app.get("/health", summary="Health check", tags=["Health"])
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
    print(f"🌐 Membership portal API: {server_url}")
    print(f"📚 API docs: {server_url}/docs")

    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=True)
