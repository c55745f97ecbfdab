"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from worktimer.config import settings
from worktimer.database import database
from worktimer.routers import (
    auth,
    import_export,
    instance_settings,
    projects,
    reports,
    time_entries,
    users,
)

logging.basicConfig(
    level=logging.DEBUG if settings.debug else settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    await database.connect()
    yield
    # Shutdown
    await database.disconnect()


app = FastAPI(
    title="WorkTimer API",
    description="Self-hosted time tracking: projects, time entries and reports",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PyMongoError)
async def persistence_error_handler(request: Request, exc: PyMongoError):
    """Answer store failures with a generic message; nothing is retried."""
    logger.error("Database operation failed on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Operation failed"},
    )


# Include routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(instance_settings.router)
app.include_router(projects.router)
app.include_router(time_entries.router)
app.include_router(reports.router)
app.include_router(import_export.router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {"status": "ok", "message": "WorkTimer API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
