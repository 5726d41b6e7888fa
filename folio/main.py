import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from folio.config import get_cors_origins, get_review_settings
from folio.db import get_settings, verify_connection, close_client
from folio.routers import entries_router, review_router

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings = get_settings()
    review_settings = get_review_settings()

    logger.info(
        "Review settings: streak horizon %s days, new entries %s of queue (max %s)",
        review_settings.streak_horizon_days,
        review_settings.new_entry_ratio,
        review_settings.new_entry_cap,
    )

    if settings.is_configured():
        if verify_connection():
            logger.info("Connected to Cosmos DB")
        else:
            logger.error("Failed to connect to Cosmos DB - check configuration")
    else:
        logger.warning("Cosmos DB not configured (COSMOS_ENDPOINT / COSMOS_EMULATOR not set)")

    yield

    # Shutdown
    close_client()
    logger.info("Cosmos DB connection closed")


app = FastAPI(
    title="Folio Review API",
    description="Spaced-repetition review backend for Folio entries",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(entries_router)
app.include_router(review_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Folio Review API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/healthz",
            "entries": "/entries",
            "review": "/review",
        },
    }


@app.get("/healthz")
async def healthz():
    """Health check endpoint."""
    return {"status": "healthy"}
