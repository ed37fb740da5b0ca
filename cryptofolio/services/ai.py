# cryptofolio/services/ai.py
import asyncio
import json
import logging
from typing import List, Optional, Sequence
import google.generativeai as genai
from pydantic import ValidationError as SchemaError
from cryptofolio.config import DEFAULT_MODEL_GEMINI, ENRICHMENT_TIMEOUT
from cryptofolio.models.asset import ASSET_RESPONSE_SCHEMA, SEED_BATCH_RESPONSE_SCHEMA, AssetSeed, SeedBatch
from cryptofolio.models.errors import EnrichmentLookupError, Result

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS = "missing_credentials"
TRANSPORT = "transport"
TIMEOUT = "timeout"
MALFORMED = "malformed"
INCOMPLETE = "incomplete"


def single_asset_prompt(identifier: str) -> str:
    return f"Provide the current price, all-time high price, and blockchain (e.g., Ethereum, Solana, etc.) for the cryptocurrency: {identifier}."


def seed_batch_prompt(identifiers: Sequence[str]) -> str:
    names = list(identifiers)
    if len(names) > 1:
        listed = ", ".join(names[:-1]) + f", and {names[-1]}"
    else:
        listed = "".join(names)
    return f"Provide the current price, all-time high price, and blockchain for {listed}. Also, provide the current USD to IDR exchange rate."


class EnrichmentClient:
    """Structured asset lookups against Gemini. One attempt per call, errors returned as values."""

    def __init__(self, api_key: Optional[str] = None, model_name: str = DEFAULT_MODEL_GEMINI,
                 timeout: float = ENRICHMENT_TIMEOUT, model=None):
        self.api_key = api_key
        self.model_name = model_name
        self.timeout = timeout
        self._model = model

    def _get_model(self):
        if self._model is None:
            if not self.api_key:
                return None
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    async def _generate(self, identifier: str, prompt: str, schema: dict) -> Result:
        model = self._get_model()
        if model is None:
            return Result.failure(EnrichmentLookupError(identifier, MISSING_CREDENTIALS, "Gemini API key is not configured"))
        try:
            response = await asyncio.wait_for(
                model.generate_content_async(
                    prompt,
                    generation_config={"response_mime_type": "application/json", "response_schema": schema},
                    request_options={"timeout": self.timeout},
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Gemini lookup timed out for {identifier}")
            return Result.failure(EnrichmentLookupError(identifier, TIMEOUT, f"no response within {self.timeout}s"))
        except Exception as e:
            logger.error(f"Gemini lookup failed for {identifier}: {e}")
            return Result.failure(EnrichmentLookupError(identifier, TRANSPORT, str(e)))
        try:
            return Result.success(json.loads(response.text))
        except (ValueError, TypeError, AttributeError) as e:
            # .text raises ValueError when the response carries no candidate
            logger.error(f"Unparsable Gemini response for {identifier}: {e}")
            return Result.failure(EnrichmentLookupError(identifier, MALFORMED, str(e)))

    async def lookup_one(self, identifier: str) -> Result:
        logger.info(f"Looking up {identifier}")
        result = await self._generate(identifier, single_asset_prompt(identifier), ASSET_RESPONSE_SCHEMA)
        if not result.ok:
            return result
        try:
            seed = AssetSeed.model_validate(result.value)
        except SchemaError as e:
            logger.error(f"Gemini response for {identifier} does not match the asset schema: {e}")
            return Result.failure(EnrichmentLookupError(identifier, MALFORMED, str(e)))
        return Result.success(seed)

    async def lookup_seed_batch(self, identifiers: Sequence[str]) -> Result:
        identifiers = list(identifiers)
        label = ", ".join(identifiers)
        logger.info(f"Fetching seed batch: {label}")
        result = await self._generate(label, seed_batch_prompt(identifiers), SEED_BATCH_RESPONSE_SCHEMA)
        if not result.ok:
            return result
        try:
            batch = SeedBatch.model_validate(result.value)
        except SchemaError as e:
            logger.error(f"Gemini seed batch does not match the schema: {e}")
            return Result.failure(EnrichmentLookupError(label, MALFORMED, str(e)))
        ordered = _match_batch(identifiers, batch.cryptocurrencies)
        if ordered is None:
            returned = ", ".join(s.symbol for s in batch.cryptocurrencies)
            logger.error(f"Incomplete seed batch: asked for {label}, got {returned}")
            return Result.failure(EnrichmentLookupError(label, INCOMPLETE, f"got {returned or 'nothing'}"))
        return Result.success(SeedBatch(cryptocurrencies=ordered, exchange_rate=batch.exchange_rate))


def _match_batch(identifiers: List[str], seeds: List[AssetSeed]) -> Optional[List[AssetSeed]]:
    # one record per identifier, matched by name or symbol; anything else is a partial answer
    if len(seeds) != len(identifiers):
        return None
    remaining = list(seeds)
    ordered = []
    for identifier in identifiers:
        key = identifier.strip().lower()
        match = next((s for s in remaining if s.name.lower() == key or s.symbol.lower() == key), None)
        if match is None:
            return None
        remaining.remove(match)
        ordered.append(match)
    return ordered
