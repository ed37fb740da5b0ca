# cryptofolio/services/store.py
"""Authoritative portfolio state.

Every successful mutation is applied in memory first, then saved once, then
announced once to subscribers, in that order. Failures come back as ``Result``
values; nothing here raises across the store boundary.
"""
import logging
import math
from dataclasses import dataclass
from decimal import Context, Decimal, DecimalException, Inexact, InvalidOperation, Overflow, Subnormal, Underflow
from enum import Enum
from typing import Callable, List, Optional, Sequence, Set
from cryptofolio.models.asset import Asset, AssetSeed, to_decimal
from cryptofolio.models.errors import (
    AlreadySeeded,
    AssetNotFound,
    BlankIdentifier,
    DuplicateAsset,
    EnrichmentFailed,
    InvalidAmount,
    LookupInFlight,
    Result,
)
from cryptofolio.models.portfolio import PortfolioSnapshot

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    FULL = "full"
    APPEND = "append"
    UPDATE = "update"


@dataclass(frozen=True)
class PortfolioChange:
    kind: ChangeKind
    snapshot: PortfolioSnapshot
    asset: Optional[Asset] = None


Listener = Callable[[PortfolioChange], None]

# bounds for holdings arithmetic: any rounding, overflow or underflow is rejected
AMOUNT_CONTEXT = Context(prec=34, Emax=99, Emin=-99, traps=[InvalidOperation, Overflow, Underflow, Subnormal, Inexact])


def parse_amount(amount) -> Optional[Decimal]:
    """Coerce user input to a finite positive Decimal, or None."""
    if isinstance(amount, bool):
        return None
    if isinstance(amount, str):
        text = amount.replace(",", "").strip()
        if not text:
            return None
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None
    elif isinstance(amount, float):
        if not math.isfinite(amount):
            return None
        value = to_decimal(amount)
    elif isinstance(amount, (int, Decimal)):
        value = Decimal(amount)
    else:
        return None
    if not value.is_finite() or value <= 0:
        return None
    try:
        return AMOUNT_CONTEXT.plus(value)
    except DecimalException:
        return None


class PortfolioStore:
    def __init__(self, client, persistence, snapshot: Optional[PortfolioSnapshot] = None):
        self.client = client
        self.persistence = persistence
        self._snapshot = snapshot or PortfolioSnapshot()
        self._listeners: List[Listener] = []
        self._in_flight: Set[str] = set()

    def snapshot(self) -> PortfolioSnapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _notify(self, change: PortfolioChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception(f"Listener failed on {change.kind.value} change")

    def _commit(self, snapshot: PortfolioSnapshot, kind: ChangeKind, asset: Optional[Asset] = None) -> None:
        self._snapshot = snapshot
        # save failures are logged by the adapter and do not undo the mutation
        self.persistence.save(snapshot)
        self._notify(PortfolioChange(kind, snapshot, asset))

    def restore(self, snapshot: PortfolioSnapshot) -> None:
        """Adopt a previously persisted snapshot without writing it back."""
        self._snapshot = snapshot
        self._notify(PortfolioChange(ChangeKind.FULL, snapshot))

    def _find_duplicate(self, *identifiers: str) -> Optional[Asset]:
        for identifier in identifiers:
            existing = self._snapshot.find(identifier)
            if existing is not None:
                return existing
        return None

    async def add_asset(self, identifier: str) -> Result:
        identifier = (identifier or "").strip()
        if not identifier:
            return Result.failure(BlankIdentifier("Enter a cryptocurrency name or symbol."))
        if self._find_duplicate(identifier):
            return Result.failure(DuplicateAsset(identifier))
        key = identifier.lower()
        if key in self._in_flight:
            return Result.failure(LookupInFlight(identifier))

        self._in_flight.add(key)
        try:
            lookup = await self.client.lookup_one(identifier)
        finally:
            self._in_flight.discard(key)
        if not lookup.ok:
            logger.error(f"Error adding crypto {identifier}: {lookup.error}")
            return Result.failure(EnrichmentFailed(lookup.error))

        asset = lookup.value.to_asset()
        # state may have changed while the lookup was pending
        if self._find_duplicate(asset.symbol, asset.name):
            logger.info(f"{asset.symbol} was added while {identifier} was being looked up")
            return Result.failure(DuplicateAsset(identifier))

        was_empty = self._snapshot.is_empty
        snapshot = self._snapshot.model_copy(update={"assets": self._snapshot.assets + (asset,)})
        logger.info(f"Added {asset.name} ({asset.symbol})")
        self._commit(snapshot, ChangeKind.FULL if was_empty else ChangeKind.APPEND, asset)
        return Result.success(asset)

    def add_holdings(self, symbol: str, amount) -> Result:
        value = parse_amount(amount)
        if value is None:
            return Result.failure(InvalidAmount("Please enter a valid positive number."))
        index = self._snapshot.index_of(symbol or "")
        if index < 0:
            return Result.failure(AssetNotFound(symbol))

        current = self._snapshot.assets[index]
        try:
            total = AMOUNT_CONTEXT.add(current.holdings, value)
        except DecimalException:
            logger.info(f"Holdings of {current.symbol} cannot absorb {value} exactly")
            return Result.failure(InvalidAmount("Please enter a valid positive number."))
        updated = current.with_holdings(total)
        assets = list(self._snapshot.assets)
        assets[index] = updated
        snapshot = self._snapshot.model_copy(update={"assets": tuple(assets)})
        logger.info(f"Holdings of {updated.symbol} now {updated.holdings}")
        self._commit(snapshot, ChangeKind.UPDATE, updated)
        return Result.success(updated)

    def seed(self, batch: Sequence, exchange_rate) -> Result:
        if not self._snapshot.is_empty:
            return Result.failure(AlreadySeeded("Portfolio already holds assets"))
        assets = []
        for item in batch:
            asset = item.to_asset() if isinstance(item, AssetSeed) else item.with_holdings(Decimal("0"))
            if any(a.matches(asset.symbol) or a.matches(asset.name) for a in assets):
                return Result.failure(DuplicateAsset(asset.symbol))
            assets.append(asset)
        rate = parse_rate(exchange_rate)
        if rate is None:
            return Result.failure(InvalidAmount("Exchange rate must be a finite number >= 0."))

        snapshot = PortfolioSnapshot(assets=tuple(assets), exchange_rate=rate)
        logger.info(f"Seeded portfolio with {len(assets)} assets")
        self._commit(snapshot, ChangeKind.FULL)
        return Result.success()


def parse_rate(rate) -> Optional[Decimal]:
    if isinstance(rate, bool):
        return None
    if isinstance(rate, float):
        if not math.isfinite(rate):
            return None
        rate = to_decimal(rate)
    try:
        rate = Decimal(rate)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not rate.is_finite() or rate < 0:
        return None
    return rate
