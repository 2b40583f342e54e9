"""Main FastAPI application module.

This module initializes the FastAPI application and registers all route handlers.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from core.logging_config import setup_logging
from config import (
    CORS_ALLOWED_ORIGINS,
    API_HOST,
    API_PORT,
    ENVIRONMENT,
    UPLOAD_DIR,
)
from core.exception_handlers import register_exception_handlers
from api.routes import auth, users, mentors, sessions, coach, payments, videos

# Setup logging
setup_logging()

# Initialize FastAPI application
app = FastAPI(
    title="Coachbook API",
    description="Backend API for booking soccer coaching sessions.",
    version="1.0.0",
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Serve uploaded videos
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")

# Register route handlers
app.include_router(auth.router)
app.include_router(users.router, prefix="/api/user")
app.include_router(users.router, prefix="/api/users", include_in_schema=False)
app.include_router(mentors.router)
app.include_router(sessions.router)
app.include_router(coach.router)
app.include_router(payments.router)
app.include_router(videos.router)


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links.

    Returns:
        Dictionary with API information and documentation links.
    """
    return {
        "name": "Coachbook API",
        "version": "1.0.0",
        "description": "Backend API for booking soccer coaching sessions.",
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
        Dictionary with status "ok" and the running environment.
    """
    return {"status": "ok", "environment": ENVIRONMENT}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    print(f"Coachbook API: {server_url}")
    print(f"API docs: {server_url}/docs")

    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=ENVIRONMENT == "development")
