# cryptofolio/models/errors.py
from dataclasses import dataclass
from typing import Any, Optional


class TrackerError(Exception):
    kind = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


# --- Validation (recovered locally, no mutation) ---

class ValidationError(TrackerError):
    kind = "validation"


class BlankIdentifier(ValidationError):
    kind = "blank_identifier"


class DuplicateAsset(ValidationError):
    kind = "duplicate_asset"

    def __init__(self, identifier: str):
        super().__init__(f"{identifier} is already in your portfolio.")
        self.identifier = identifier


class LookupInFlight(ValidationError):
    kind = "lookup_in_flight"

    def __init__(self, identifier: str):
        super().__init__(f"{identifier} is already being added.")
        self.identifier = identifier


class InvalidAmount(ValidationError):
    kind = "invalid_amount"


class AssetNotFound(ValidationError):
    kind = "asset_not_found"

    def __init__(self, symbol: str):
        super().__init__(f"No asset with symbol {symbol} in the portfolio.")
        self.symbol = symbol


# --- Enrichment ---

class EnrichmentLookupError(TrackerError):
    """Lookup against the enrichment service failed (transport, timeout or schema)."""
    kind = "lookup"

    def __init__(self, identifier: str, reason: str, detail: str = ""):
        super().__init__(f"Lookup for {identifier!r} failed ({reason}): {detail}" if detail else f"Lookup for {identifier!r} failed ({reason})")
        self.identifier = identifier
        self.reason = reason
        self.detail = detail


class EnrichmentFailed(TrackerError):
    kind = "enrichment_failed"

    def __init__(self, cause: EnrichmentLookupError):
        super().__init__(cause.message)
        self.cause = cause
        self.identifier = cause.identifier


# --- Persistence ---

class PersistError(TrackerError):
    kind = "persist"


# --- Seeding ---

class SeedError(TrackerError):
    kind = "seed"


class AlreadySeeded(SeedError):
    kind = "already_seeded"


@dataclass(frozen=True)
class Result:
    value: Any = None
    error: Optional[TrackerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: TrackerError) -> "Result":
        return cls(error=error)
