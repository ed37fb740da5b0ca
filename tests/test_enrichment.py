# tests/test_enrichment.py
from decimal import Decimal
import pytest
from cryptofolio.models.asset import ASSET_RESPONSE_SCHEMA, SEED_BATCH_RESPONSE_SCHEMA
from cryptofolio.services.ai import (
    INCOMPLETE,
    MALFORMED,
    MISSING_CREDENTIALS,
    TIMEOUT,
    TRANSPORT,
    EnrichmentClient,
    seed_batch_prompt,
)
from conftest import BNB, BTC, ETH, SOL, FakeGeminiModel


@pytest.mark.asyncio
async def test_lookup_one_returns_seed():
    model = FakeGeminiModel(payload=SOL)
    client = EnrichmentClient(model=model, timeout=5)

    result = await client.lookup_one("Solana")

    assert result.ok
    asset = result.value.to_asset()
    assert asset.symbol == "SOL"
    assert asset.price_usd == Decimal("150")
    assert asset.holdings == 0
    request = model.requests[0]
    assert "Solana" in request["prompt"]
    assert request["generation_config"]["response_mime_type"] == "application/json"
    assert request["generation_config"]["response_schema"] == ASSET_RESPONSE_SCHEMA
    assert request["request_options"] == {"timeout": 5}


@pytest.mark.asyncio
async def test_missing_credentials_surface_on_first_call():
    result = await EnrichmentClient(api_key=None).lookup_one("Solana")
    assert result.error.reason == MISSING_CREDENTIALS
    assert result.error.identifier == "Solana"


@pytest.mark.asyncio
async def test_transport_error_is_returned():
    client = EnrichmentClient(model=FakeGeminiModel(error=ConnectionError("connection reset")))
    result = await client.lookup_one("Solana")
    assert result.error.reason == TRANSPORT
    assert "connection reset" in result.error.message


@pytest.mark.asyncio
async def test_timeout_is_returned():
    client = EnrichmentClient(model=FakeGeminiModel(payload=SOL, delay=1), timeout=0.01)
    result = await client.lookup_one("Solana")
    assert result.error.reason == TIMEOUT


@pytest.mark.asyncio
async def test_blocked_response_is_malformed():
    client = EnrichmentClient(model=FakeGeminiModel(payload=ValueError("no candidates")))
    result = await client.lookup_one("Solana")
    assert result.error.reason == MALFORMED


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    "not json",
    "",
    [SOL],
    {k: v for k, v in SOL.items() if k != "blockchain"},
    {**SOL, "price_usd": -1},
    {**SOL, "ath_usd": -0.01},
    {**SOL, "price_usd": "150"},
    {**SOL, "price_usd": True},
    {**SOL, "price_usd": None},
    {**SOL, "symbol": "   "},
    {**SOL, "name": 42},
])
async def test_malformed_payload_is_lookup_error(payload):
    client = EnrichmentClient(model=FakeGeminiModel(payload=payload))
    result = await client.lookup_one("Solana")
    assert not result.ok
    assert result.error.reason == MALFORMED
    assert result.error.identifier == "Solana"


@pytest.mark.asyncio
async def test_lookup_seed_batch_orders_by_request():
    payload = {"cryptocurrencies": [ETH, BNB, SOL, BTC], "exchangeRateUSDtoIDR": 15800}
    model = FakeGeminiModel(payload=payload)
    client = EnrichmentClient(model=model)

    result = await client.lookup_seed_batch(["Bitcoin", "Ethereum", "Solana", "BNB"])

    assert result.ok
    assert [s.symbol for s in result.value.cryptocurrencies] == ["BTC", "ETH", "SOL", "BNB"]
    assert result.value.exchange_rate_decimal == Decimal("15800")
    assert model.requests[0]["generation_config"]["response_schema"] == SEED_BATCH_RESPONSE_SCHEMA


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"cryptocurrencies": [BTC], "exchangeRateUSDtoIDR": 15800},
    {"cryptocurrencies": [BTC, BTC], "exchangeRateUSDtoIDR": 15800},
    {"cryptocurrencies": [BTC, ETH, SOL], "exchangeRateUSDtoIDR": 15800},
])
async def test_partial_seed_batch_is_a_single_failure(payload):
    client = EnrichmentClient(model=FakeGeminiModel(payload=payload))
    result = await client.lookup_seed_batch(["Bitcoin", "Ethereum"])
    assert result.error.reason == INCOMPLETE


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"cryptocurrencies": [BTC, ETH]},
    {"cryptocurrencies": [BTC, ETH], "exchangeRateUSDtoIDR": -1},
    {"cryptocurrencies": [BTC, {**ETH, "price_usd": "3400"}], "exchangeRateUSDtoIDR": 15800},
])
async def test_malformed_seed_batch(payload):
    client = EnrichmentClient(model=FakeGeminiModel(payload=payload))
    result = await client.lookup_seed_batch(["Bitcoin", "Ethereum"])
    assert result.error.reason == MALFORMED


@pytest.mark.asyncio
async def test_single_attempt_per_call():
    model = FakeGeminiModel(error=RuntimeError("503 unavailable"))
    client = EnrichmentClient(model=model)
    await client.lookup_one("Solana")
    assert len(model.requests) == 1


def test_seed_batch_prompt_lists_coins():
    prompt = seed_batch_prompt(["Bitcoin", "Ethereum", "Solana", "BNB"])
    assert "Bitcoin, Ethereum, Solana, and BNB" in prompt
    assert "USD to IDR" in prompt
