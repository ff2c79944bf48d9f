# renovation_tracker/stores/json_store.py
import json
import os
import tempfile
from pathlib import Path

from renovation_tracker.stores.base import BaseStore


class JSONFileStore(BaseStore):
    """
    Keeps every key in a single JSON object file. Writes go through a
    temporary file in the same directory and are swapped in with
    os.replace, so a crash never leaves a half-written file behind.
    """

    def __init__(self, path):
        self.path = Path(path)

    def _read_all(self):
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def _read(self, key):
        data = self._read_all()
        if key not in data:
            return None
        return json.dumps(data[key], ensure_ascii=False)

    def _write(self, key, raw):
        data = self._read_all()
        data[key] = json.loads(raw)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def __repr__(self):
        return f"JSONFileStore({str(self.path)!r})"
