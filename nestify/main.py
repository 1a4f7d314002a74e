"""
FastAPI main application for the Nestify API.
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from nestify import __version__
from nestify.config import get_settings
from nestify.db import init_db, close_db
from nestify.error_handling import register_exception_handlers

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info(f"Starting Nestify API ({settings.store_backend} stores)...")
    await init_db(settings)
    logger.info("Database initialized")

    yield

    # Shutdown
    logger.info("Shutting down Nestify API...")
    await close_db()


app = FastAPI(
    title="Nestify API",
    description="Real-estate listings, favorites and promoter profiles",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": __version__
    }


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Nestify API",
        "docs": "/docs",
        "health": "/health",
    }


# Import and include routers
from nestify.routers import properties, favorites, promoters, users, auth

app.include_router(properties.router, prefix="/api/v1", tags=["properties"])
app.include_router(favorites.router, prefix="/api/v1", tags=["favorites"])
app.include_router(promoters.router, prefix="/api/v1", tags=["promoters"])
app.include_router(users.router, prefix="/api/v1", tags=["users"])
app.include_router(auth.router, prefix="/api/v1", tags=["auth"])
