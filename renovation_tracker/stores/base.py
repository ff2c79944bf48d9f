# renovation_tracker/stores/base.py
import json
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class BaseStore(ABC):
    """Key-value store holding JSON-serializable values.

    Subclasses only move raw strings around; decoding, encoding and the
    "never raise" policy live here.
    """

    @abstractmethod
    def _read(self, key):
        """Return the raw string stored under *key*, or None if absent."""

    @abstractmethod
    def _write(self, key, raw):
        """Store the raw string *raw* under *key*."""

    def load(self, key, default):
        try:
            raw = self._read(key)
        except Exception:
            logger.warning("Could not read %r from %s; using default", key, self, exc_info=True)
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Stored value for %r is not valid JSON; using default", key)
            return default

    def save(self, key, value) -> bool:
        """Serialize and write *value*. Returns False (and logs) on failure."""
        try:
            raw = json.dumps(value, ensure_ascii=False)
            self._write(key, raw)
        except Exception:
            logger.exception("Failed to persist %r to %s", key, self)
            return False
        return True
