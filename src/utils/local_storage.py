# persisted client-side key-value state (cart while anonymous, auth session)
from __future__ import annotations

import json
import os
from typing import Any, Optional

from utils.logger import get_logger

_logger = get_logger(__name__)

CART_KEY = "macrame_cart"
SESSION_KEY = "macrame_session"


class LocalStorage:
    """
    String key -> string value store backed by a single JSON file.

    Values are stored already serialized, the way a browser's localStorage
    holds them; `get_json`/`set_json` are conveniences on top.
    """

    def __init__(self, path: str):
        self.path = path

    def _read_all(self) -> dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            raw = f.read()
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning(f"Local storage file {self.path} is corrupt, ignoring it.")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, str]) -> None:
        folder = os.path.dirname(self.path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)

    def get_json(self, key: str) -> Any:
        """Parsed value for key, or None if missing or not valid JSON."""
        raw = self.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            _logger.error(f"Error parsing local value under '{key}', dropping it.")
            return None

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value))
