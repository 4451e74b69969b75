"""Local key-value storage backed by a single JSON file"""
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from vision_pos.errors import PersistenceError


class JsonFileStore:
    """String values keyed by name, kept in one JSON document on disk"""

    def __init__(self, path: str):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to read {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(f"Unexpected storage layout in {self.path}")
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str):
        try:
            data = self._read_all()
        except PersistenceError:
            data = {}
        data[key] = value
        self._write_all(data)

    def _write_all(self, data: Dict[str, str]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to write {self.path}: {e}") from e
