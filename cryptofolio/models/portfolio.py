# cryptofolio/models/portfolio.py
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Tuple, Union
from cryptofolio.models.asset import Asset


class PortfolioSnapshot(BaseModel):
    """Immutable portfolio state: assets in display order plus the USD->IDR rate.

    This is also the persisted shape. Field aliases keep the stored keys
    (``cryptocurrencies``, ``exchangeRateUSDtoIDR``) stable.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    assets: Tuple[Asset, ...] = Field(default=(), alias="cryptocurrencies")
    exchange_rate: Decimal = Field(default=Decimal("0"), alias="exchangeRateUSDtoIDR", ge=0)

    @field_validator("assets", mode="before")
    @classmethod
    def default_assets(cls, v):
        return () if v is None else v

    @field_validator("assets")
    @classmethod
    def validate_unique_symbols(cls, v):
        seen = set()
        for asset in v:
            key = asset.symbol.lower()
            if key in seen:
                raise ValueError(f"Duplicate symbol {asset.symbol}")
            seen.add(key)
        return v

    @field_validator("exchange_rate", mode="before")
    @classmethod
    def default_rate(cls, v):
        if v is None:
            return Decimal("0")
        if isinstance(v, bool):
            raise ValueError("must be a number")
        if isinstance(v, float):
            return Decimal(repr(v))
        return v

    @property
    def is_empty(self) -> bool:
        return not self.assets

    def find(self, identifier: str) -> Optional[Asset]:
        for asset in self.assets:
            if asset.matches(identifier):
                return asset
        return None

    def index_of(self, symbol: str) -> int:
        key = symbol.strip().lower()
        for i, asset in enumerate(self.assets):
            if asset.symbol.lower() == key:
                return i
        return -1

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class AddAssetRequest(BaseModel):
    identifier: str


class AddHoldingsRequest(BaseModel):
    amount: Union[int, float, str]
