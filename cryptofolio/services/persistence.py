# cryptofolio/services/persistence.py
import logging
from typing import Optional
from pydantic import ValidationError as SchemaError
from cryptofolio.config import STORAGE_KEY
from cryptofolio.models.errors import PersistError, Result
from cryptofolio.models.portfolio import PortfolioSnapshot
from cryptofolio.storage import KeyValueStorage, StorageError

logger = logging.getLogger(__name__)


class SnapshotPersistence:
    def __init__(self, storage: KeyValueStorage, key: str = STORAGE_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> Optional[PortfolioSnapshot]:
        """Return the stored snapshot, or None when the slot is missing or corrupt."""
        try:
            raw = self.storage.get_item(self.key)
        except StorageError as e:
            logger.warning(f"Could not load state from storage: {e}")
            return None
        if raw is None:
            logger.info(f"No saved portfolio under {self.key}")
            return None
        try:
            snapshot = PortfolioSnapshot.model_validate_json(raw)
        except (SchemaError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring corrupt portfolio snapshot under {self.key}: {e}")
            return None
        logger.info(f"Loaded portfolio with {len(snapshot.assets)} assets")
        return snapshot

    def save(self, snapshot: PortfolioSnapshot) -> Result:
        try:
            self.storage.set_item(self.key, snapshot.to_json())
        except Exception as e:
            # durability loss is logged only; in-memory state stays authoritative
            logger.error(f"Could not save state to storage: {e}")
            return Result.failure(PersistError(str(e)))
        return Result.success()
