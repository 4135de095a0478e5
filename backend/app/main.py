"""
School Forum Backend Application.

FastAPI application for a school discussion forum: students, teachers,
and admins post in subject categories, reply, like, and moderate.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from loguru import logger

from app.api.v1 import router as api_router
from app.core.config import settings
from app.core.database import close_db, init_db
from app.core.exceptions import register_exception_handlers
from app.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging()
    logger.info("Starting School Forum Backend...")

    # Initialize database
    await init_db()
    logger.info("Database initialized")

    logger.info("School Forum Backend started successfully")

    yield

    # Shutdown
    logger.info("Shutting down School Forum Backend...")

    # Close database
    await close_db()

    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    School Forum Platform

    ## Features

    - **Auth**: Registration and JWT login for students, teachers, and admins
    - **Posts**: Categorized discussions with tags, replies, and likes
    - **Moderation**: Teachers and admins pin, lock, and remove content
    - **Categories**: Subject sections managed by teachers and admins

    ## Documentation

    - [API Docs](/docs) - Interactive Swagger UI
    - [ReDoc](/redoc) - Alternative documentation
    """,
    openapi_url=f"{settings.api_prefix}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API router
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "version": settings.app_version,
    }


@app.get("/", tags=["System"])
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "endpoints": {
            "auth": f"{settings.api_prefix}/auth",
            "users": f"{settings.api_prefix}/users",
            "posts": f"{settings.api_prefix}/posts",
            "categories": f"{settings.api_prefix}/categories",
        },
    }
