# cryptofolio/services/tracker.py
import asyncio
import logging
from typing import Optional, Sequence
from cryptofolio.models.errors import (
    AlreadySeeded,
    AssetNotFound,
    BlankIdentifier,
    DuplicateAsset,
    EnrichmentFailed,
    InvalidAmount,
    LookupInFlight,
    Result,
    TrackerError,
)
from cryptofolio.services.store import PortfolioStore
from cryptofolio.services.view import ViewSynchronizer

logger = logging.getLogger(__name__)

SEED_ERROR_MESSAGE = "Could not fetch initial data from the Gemini API. Please refresh the page or try again."


def user_message(error: TrackerError) -> str:
    if isinstance(error, DuplicateAsset):
        return f"{error.identifier} is already in your portfolio."
    if isinstance(error, LookupInFlight):
        return f"{error.identifier} is already being added. Please wait."
    if isinstance(error, EnrichmentFailed):
        return (f'Could not fetch data for "{error.identifier}". The token may not be in the '
                f"Gemini model's database. Please try another name.")
    if isinstance(error, InvalidAmount):
        return "Please enter a valid positive number."
    if isinstance(error, AssetNotFound):
        return f"{error.symbol} is not in your portfolio."
    if isinstance(error, BlankIdentifier):
        return "Enter a cryptocurrency name or symbol."
    return error.message or "Something went wrong."


class CryptoTracker:
    """Wires store, persistence, enrichment and view together for one session."""

    def __init__(self, store: PortfolioStore, persistence, client, view: ViewSynchronizer,
                 seed_identifiers: Sequence[str]):
        self.store = store
        self.persistence = persistence
        self.client = client
        self.view = view
        self.seed_identifiers = list(seed_identifiers)
        self.started = False
        self._start_lock = asyncio.Lock()
        store.subscribe(view.on_change)

    async def start(self) -> Optional[TrackerError]:
        async with self._start_lock:
            if self.started:
                return None
            snapshot = self.persistence.load()
            if snapshot is not None and not snapshot.is_empty:
                logger.info("Loaded portfolio from storage.")
                self.store.restore(snapshot)
                self.started = True
                return None

            self.view.show_loading()
            batch = await self.client.lookup_seed_batch(self.seed_identifiers)
            if not batch.ok:
                logger.error(f"Seeding failed: {batch.error}")
                self.view.show_error(SEED_ERROR_MESSAGE)
                return batch.error

            seeded = self.store.seed(batch.value.cryptocurrencies, batch.value.exchange_rate_decimal)
            if not seeded.ok:
                if isinstance(seeded.error, AlreadySeeded):
                    logger.debug("Portfolio already seeded, skipping")
                else:
                    self.view.show_error(SEED_ERROR_MESSAGE)
                    return seeded.error
            self.started = True
            return None

    async def submit_new_asset(self, text: str) -> Result:
        return await self.store.add_asset(text)

    def add_holdings(self, symbol: str, amount) -> Result:
        return self.store.add_holdings(symbol, amount)
