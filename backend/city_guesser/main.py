import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .database.seed import load_cities_from_csv
from .database.session import AsyncSessionLocal, init_db
from .routers import cities, game, scores
from .config import get_settings

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events for the application."""
    # Startup: Initialize database and optionally load the city catalog
    await init_db()
    if settings.SEED_ON_STARTUP:
        async with AsyncSessionLocal() as db:
            await load_cities_from_csv(db, settings.CITIES_CSV_PATH)
    logger.info("City Guesser API ready")
    yield


# Create FastAPI application
app = FastAPI(
    title="City Guesser",
    description="Guess the city shown on the map, scored by great-circle distance",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(game.router, prefix="/api")
app.include_router(cities.router, prefix="/api")
app.include_router(scores.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Welcome to City Guesser API",
        "docs": "/docs",
        "health": "ok"
    }


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
