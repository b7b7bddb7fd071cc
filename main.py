"""
UserManager FastAPI Application

Main entry point for the user management server.
Configures FastAPI with CORS, routes, logging, and database.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from usermanager.config import get_settings
from usermanager.database import engine, init_db
from usermanager.api.routes import health, users
from usermanager.web import routes as pages

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("usermanager")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Handles:
    - Database initialisation on startup
    - Engine disposal on shutdown
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.VERSION}")
    await init_db()
    logger.info(f"Server ready on {settings.server.HOST}:{settings.server.PORT}")

    yield

    # Shutdown
    logger.info("Shutting down server...")
    await engine.dispose()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="User account management: REST API and admin pages",
    lifespan=lifespan,
    debug=settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.server.CORS_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(users.router)
app.include_router(pages.router)


@app.get("/", include_in_schema=False)
async def root():
    """Send browsers to the user list."""
    return RedirectResponse(url="/users")


@app.get("/api")
async def api_info() -> dict:
    """
    API information.

    Returns:
        dict: Welcome message and API links.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.VERSION,
        "docs": "/docs",
        "health": "/health",
        "users": "/api/users",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.server.HOST, port=settings.server.PORT, reload=settings.DEBUG)
