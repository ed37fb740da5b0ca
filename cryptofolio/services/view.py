# cryptofolio/services/view.py
"""Projection of portfolio snapshots into table rows.

The synchronizer only reads snapshots handed to it by the store. It emits the
smallest instruction that brings the rendered rows back in line: a full
replace, a single append, or a single in-place row update.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Protocol, Tuple
from cryptofolio.models.asset import Asset
from cryptofolio.models.portfolio import PortfolioSnapshot
from cryptofolio.services.store import ChangeKind, PortfolioChange

logger = logging.getLogger(__name__)

LOADING = "loading"
READY = "ready"
EMPTY = "empty"
ERROR = "error"

EMPTY_MESSAGE = "Your portfolio is empty. Add a cryptocurrency to begin."


def format_usd(value: Decimal) -> str:
    return f"${value:,.2f}"


def format_idr(value: Decimal) -> str:
    # id-ID groups with "." and uses "," for decimals
    return "Rp " + f"{value:,.2f}".translate(str.maketrans(",.", ".,"))


def format_quantity(value: Decimal, places: int = 6) -> str:
    text = f"{value:,.{places}f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


@dataclass(frozen=True)
class Row:
    name: str
    symbol: str
    blockchain: str
    ath_usd: Decimal
    price_usd: Decimal
    price_quote: Decimal
    holdings: Decimal
    value_usd: Decimal

    @classmethod
    def from_asset(cls, asset: Asset, exchange_rate: Decimal) -> "Row":
        return cls(
            name=asset.name,
            symbol=asset.symbol.upper(),
            blockchain=asset.blockchain,
            ath_usd=asset.ath_usd,
            price_usd=asset.price_usd,
            price_quote=asset.price_usd * exchange_rate,
            holdings=asset.holdings,
            value_usd=asset.value_usd,
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "blockchain": self.blockchain,
            "ath_usd": str(self.ath_usd),
            "price_usd": str(self.price_usd),
            "price_idr": str(self.price_quote),
            "holdings": str(self.holdings),
            "value_usd": str(self.value_usd),
            "display": {
                "ath_usd": format_usd(self.ath_usd),
                "price_usd": format_usd(self.price_usd),
                "price_idr": format_idr(self.price_quote),
                "holdings": format_quantity(self.holdings),
                "value_usd": format_usd(self.value_usd),
            },
        }


@dataclass(frozen=True)
class RenderInstruction:
    op: str  # "replace" | "append" | "update"
    rows: Tuple[Row, ...]
    index: Optional[int] = None


class Renderer(Protocol):
    def render(self, instruction: RenderInstruction) -> None: ...


def project(snapshot: PortfolioSnapshot) -> Tuple[Row, ...]:
    return tuple(Row.from_asset(a, snapshot.exchange_rate) for a in snapshot.assets)


class ViewSynchronizer:
    def __init__(self, renderer: Optional[Renderer] = None):
        self.renderer = renderer
        self.rows: List[Row] = []
        self.status = LOADING
        self.error_message: Optional[str] = None
        self.exchange_rate = Decimal("0")

    def _emit(self, instruction: RenderInstruction) -> RenderInstruction:
        if self.renderer is not None:
            self.renderer.render(instruction)
        return instruction

    def _settle(self, snapshot: PortfolioSnapshot) -> None:
        self.exchange_rate = snapshot.exchange_rate
        self.status = EMPTY if snapshot.is_empty else READY
        self.error_message = None

    def show_loading(self) -> None:
        self.status = LOADING
        self.error_message = None

    def show_error(self, message: str) -> None:
        self.status = ERROR
        self.error_message = message

    def apply_full_snapshot(self, snapshot: PortfolioSnapshot) -> RenderInstruction:
        rows = project(snapshot)
        self.rows = list(rows)
        self._settle(snapshot)
        return self._emit(RenderInstruction("replace", rows))

    def apply_append(self, snapshot: PortfolioSnapshot, asset: Asset) -> RenderInstruction:
        index = snapshot.index_of(asset.symbol)
        # only a one-row gap at the tail can be closed incrementally
        if not self.rows or index != len(self.rows) or index != len(snapshot.assets) - 1 or self.exchange_rate != snapshot.exchange_rate:
            return self.apply_full_snapshot(snapshot)
        row = Row.from_asset(snapshot.assets[index], snapshot.exchange_rate)
        self.rows.append(row)
        self._settle(snapshot)
        return self._emit(RenderInstruction("append", (row,), index))

    def apply_update(self, snapshot: PortfolioSnapshot, asset: Asset) -> RenderInstruction:
        index = snapshot.index_of(asset.symbol)
        if index < 0 or len(self.rows) != len(snapshot.assets) or self.exchange_rate != snapshot.exchange_rate:
            return self.apply_full_snapshot(snapshot)
        row = Row.from_asset(snapshot.assets[index], snapshot.exchange_rate)
        self.rows[index] = row
        self._settle(snapshot)
        return self._emit(RenderInstruction("update", (row,), index))

    def on_change(self, change: PortfolioChange) -> RenderInstruction:
        if change.kind == ChangeKind.APPEND and change.asset is not None:
            return self.apply_append(change.snapshot, change.asset)
        if change.kind == ChangeKind.UPDATE and change.asset is not None:
            return self.apply_update(change.snapshot, change.asset)
        return self.apply_full_snapshot(change.snapshot)

    def state(self) -> dict:
        return {
            "status": self.status,
            "error": self.error_message,
            "message": EMPTY_MESSAGE if self.status == EMPTY else None,
            "exchange_rate": str(self.exchange_rate),
            "rows": [r.to_dict() for r in self.rows],
        }
