# cryptofolio/config.py
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Gemini credential; API_KEY kept for compatibility with the browser build
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
DEFAULT_MODEL_GEMINI = os.getenv("DEFAULT_MODEL_GEMINI", "gemini-2.5-flash")
ENRICHMENT_TIMEOUT = float(os.getenv("ENRICHMENT_TIMEOUT", "30"))

STORAGE_FILE = os.getenv("STORAGE_FILE", str(PROJECT_ROOT / "data" / "local_storage.json"))
STORAGE_KEY = os.getenv("STORAGE_KEY", "cryptoPortfolioTracker")

DEFAULT_SEED_COINS = ["Bitcoin", "Ethereum", "Solana", "BNB"]
SEED_COINS = [c.strip() for c in os.getenv("SEED_COINS", "").split(",") if c.strip()] or DEFAULT_SEED_COINS.copy()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
