# cryptofolio/models/asset.py
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List


def _require_text(v):
    if not isinstance(v, str):
        raise ValueError("must be a string")
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


def _require_number(v):
    # bool is an int subclass; numeric strings are a schema mismatch here
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ValueError("must be a number")
    return v


def to_decimal(value) -> Decimal:
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


class Asset(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    symbol: str
    price_usd: Decimal = Field(ge=0)
    ath_usd: Decimal = Field(ge=0)
    blockchain: str
    holdings: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("name", "symbol", "blockchain", mode="before")
    @classmethod
    def validate_text(cls, v):
        return _require_text(v)

    @field_validator("price_usd", "ath_usd", "holdings", mode="before")
    @classmethod
    def validate_decimal(cls, v):
        if isinstance(v, bool):
            raise ValueError("must be a number")
        if isinstance(v, float):
            return to_decimal(v)
        return v

    @property
    def value_usd(self) -> Decimal:
        return self.price_usd * self.holdings

    def matches(self, identifier: str) -> bool:
        key = identifier.strip().lower()
        return self.symbol.lower() == key or self.name.lower() == key

    def with_holdings(self, holdings: Decimal) -> "Asset":
        return self.model_copy(update={"holdings": holdings})


class AssetSeed(BaseModel):
    """One record as returned by the enrichment service."""

    name: str
    symbol: str
    price_usd: float = Field(ge=0, allow_inf_nan=False)
    ath_usd: float = Field(ge=0, allow_inf_nan=False)
    blockchain: str

    @field_validator("name", "symbol", "blockchain", mode="before")
    @classmethod
    def validate_text(cls, v):
        return _require_text(v)

    @field_validator("price_usd", "ath_usd", mode="before")
    @classmethod
    def validate_number(cls, v):
        return _require_number(v)

    def to_asset(self) -> Asset:
        return Asset(
            name=self.name,
            symbol=self.symbol,
            price_usd=to_decimal(self.price_usd),
            ath_usd=to_decimal(self.ath_usd),
            blockchain=self.blockchain,
            holdings=Decimal("0"),
        )


class SeedBatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cryptocurrencies: List[AssetSeed]
    exchange_rate: float = Field(alias="exchangeRateUSDtoIDR", ge=0, allow_inf_nan=False)

    @field_validator("exchange_rate", mode="before")
    @classmethod
    def validate_rate(cls, v):
        return _require_number(v)

    @property
    def exchange_rate_decimal(self) -> Decimal:
        return to_decimal(self.exchange_rate)


# JSON schemas handed to the enrichment model (response_schema)
ASSET_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "symbol": {"type": "STRING"},
        "price_usd": {"type": "NUMBER"},
        "ath_usd": {"type": "NUMBER"},
        "blockchain": {"type": "STRING"},
    },
    "required": ["name", "symbol", "price_usd", "ath_usd", "blockchain"],
}

SEED_BATCH_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "cryptocurrencies": {"type": "ARRAY", "items": ASSET_RESPONSE_SCHEMA},
        "exchangeRateUSDtoIDR": {"type": "NUMBER"},
    },
    "required": ["cryptocurrencies", "exchangeRateUSDtoIDR"],
}
