# cryptofolio/main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from cryptofolio.config import (
    DEFAULT_MODEL_GEMINI,
    ENRICHMENT_TIMEOUT,
    FRONTEND_URL,
    GEMINI_API_KEY,
    LOG_LEVEL,
    SEED_COINS,
    STORAGE_FILE,
    STORAGE_KEY,
)
from cryptofolio.storage import LocalStorage
from cryptofolio.services.ai import EnrichmentClient
from cryptofolio.services.persistence import SnapshotPersistence
from cryptofolio.services.store import PortfolioStore
from cryptofolio.services.tracker import CryptoTracker
from cryptofolio.services.view import ViewSynchronizer

# Routers import
from cryptofolio.routers import portfolio, root

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def build_tracker() -> CryptoTracker:
    persistence = SnapshotPersistence(LocalStorage(STORAGE_FILE), STORAGE_KEY)
    client = EnrichmentClient(api_key=GEMINI_API_KEY, model_name=DEFAULT_MODEL_GEMINI, timeout=ENRICHMENT_TIMEOUT)
    store = PortfolioStore(client, persistence)
    return CryptoTracker(store, persistence, client, ViewSynchronizer(), SEED_COINS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    tracker = build_tracker()
    app.state.tracker = tracker
    error = await tracker.start()
    if error is not None:
        logger.error(f"Starting with an empty portfolio: {error}")
    yield


app = FastAPI(lifespan=lifespan)

# Include routers
app.include_router(root.router)
app.include_router(portfolio.router)

# CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
