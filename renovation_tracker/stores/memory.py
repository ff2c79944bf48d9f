# renovation_tracker/stores/memory.py
from renovation_tracker.stores.base import BaseStore


class MemoryStore(BaseStore):
    """Process-local store; values are kept serialized like a browser's localStorage."""

    def __init__(self, path=None):
        self._data = {}

    def _read(self, key):
        return self._data.get(key)

    def _write(self, key, raw):
        self._data[key] = raw

    def __repr__(self):
        return "MemoryStore()"
