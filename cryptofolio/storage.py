# cryptofolio/storage.py
"""Durable local key-value slots (a file-backed stand-in for browser localStorage)."""
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class LocalStorage:
    """All slots live in one JSON object on disk: {key: serialized value}."""

    def __init__(self, path):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read storage file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Storage file {self.path} does not hold a JSON object")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except (OSError, TypeError) as e:
            raise StorageError(f"Could not write storage file {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        try:
            data = self._read()
        except StorageError as e:
            # a corrupt file is overwritten rather than blocking every later write
            logger.warning(f"Discarding unreadable storage file: {e}")
            data = {}
        data[key] = value
        logger.info(f"Saving slot {key}: {self.path}")
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


class MemoryStorage:
    """In-process storage; ``quota`` caps the total stored characters."""

    def __init__(self, initial: Optional[Dict[str, str]] = None, quota: Optional[int] = None):
        self.items = dict(initial or {})
        self.quota = quota

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota is not None:
            used = sum(len(v) for k, v in self.items.items() if k != key)
            if used + len(value) > self.quota:
                raise StorageError("Storage quota exceeded")
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)
