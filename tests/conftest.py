# tests/conftest.py
import asyncio
import json
import pytest
from cryptofolio.models.asset import AssetSeed, SeedBatch
from cryptofolio.models.errors import EnrichmentLookupError, Result
from cryptofolio.services.persistence import SnapshotPersistence
from cryptofolio.services.store import PortfolioStore
from cryptofolio.services.view import ViewSynchronizer
from cryptofolio.storage import MemoryStorage

BTC = {"name": "Bitcoin", "symbol": "BTC", "price_usd": 65000, "ath_usd": 73750, "blockchain": "Bitcoin"}
ETH = {"name": "Ethereum", "symbol": "ETH", "price_usd": 3400.5, "ath_usd": 4878.26, "blockchain": "Ethereum"}
SOL = {"name": "Solana", "symbol": "SOL", "price_usd": 150, "ath_usd": 260, "blockchain": "Solana"}
BNB = {"name": "BNB", "symbol": "BNB", "price_usd": 580, "ath_usd": 720, "blockchain": "BNB Chain"}


class FakeClient:
    """Enrichment stand-in keyed by lower-cased identifier."""

    def __init__(self, records=None, batch=None, gate=None):
        self.records = {k.lower(): v for k, v in (records or {}).items()}
        self.batch = batch
        self.gate = gate
        self.calls = []
        self.batch_calls = 0

    async def lookup_one(self, identifier):
        self.calls.append(identifier)
        if self.gate is not None:
            await self.gate.wait()
        record = self.records.get(identifier.lower())
        if record is None:
            return Result.failure(EnrichmentLookupError(identifier, "malformed", "unknown token"))
        return Result.success(AssetSeed.model_validate(record))

    async def lookup_seed_batch(self, identifiers):
        self.batch_calls += 1
        if self.batch is None:
            return Result.failure(EnrichmentLookupError(", ".join(identifiers), "transport", "offline"))
        return Result.success(SeedBatch.model_validate(self.batch))


class RecordingPersistence(SnapshotPersistence):
    def __init__(self, storage=None, events=None):
        super().__init__(storage if storage is not None else MemoryStorage())
        self.events = events if events is not None else []
        self.saved = []

    def save(self, snapshot):
        self.events.append("save")
        self.saved.append(snapshot)
        return super().save(snapshot)


class FakeResponse:
    def __init__(self, text):
        self._text = text

    @property
    def text(self):
        if isinstance(self._text, Exception):
            raise self._text
        return self._text


class FakeGeminiModel:
    """Mimics GenerativeModel.generate_content_async."""

    def __init__(self, payload=None, error=None, delay=0):
        self.payload = payload
        self.error = error
        self.delay = delay
        self.requests = []

    async def generate_content_async(self, prompt, generation_config=None, request_options=None):
        self.requests.append({"prompt": prompt, "generation_config": generation_config, "request_options": request_options})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if isinstance(self.payload, (dict, list)):
            return FakeResponse(json.dumps(self.payload))
        return FakeResponse(self.payload)


@pytest.fixture
def events():
    return []


@pytest.fixture
def persistence(events):
    return RecordingPersistence(events=events)


@pytest.fixture
def client():
    return FakeClient(records={"solana": SOL, "sol": SOL, "bnb": BNB})


@pytest.fixture
def store(client, persistence):
    return PortfolioStore(client, persistence)


@pytest.fixture
def seeded_store(store):
    result = store.seed([AssetSeed.model_validate(BTC), AssetSeed.model_validate(ETH)], 15800)
    assert result.ok
    return store


@pytest.fixture
def view():
    return ViewSynchronizer()
