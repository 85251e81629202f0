"""
Key-value local storage backed by a single JSON file.

Values are strings, the way browser local storage keeps them; callers that
need structured data go through get_json/set_json.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger("gomarket.local_storage")

# Storage keys
USER_PROFILE_KEY = "gomarket_user_profile"
SAVED_LISTINGS_KEY = "gomarket_saved_listings"
SAVED_SEARCHES_KEY = "gomarket_saved_searches"
APPLY_SEARCH_KEY = "gomarket_apply_search"
THEME_KEY = "theme"
CURRENCY_KEY = "currency"
NOTIFICATIONS_KEY = "notifications"


class LocalStorage:
    """String-keyed store persisted to a JSON file on every write."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._items: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        """Load all items from disk; a corrupt file counts as empty."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            logger.warning("local storage file %s is unreadable, starting empty", self.path, exc_info=True)
            return {}
        if not isinstance(data, dict):
            logger.warning("local storage file %s does not hold an object, starting empty", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._items, f, indent=2)
        os.replace(tmp, self.path)

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)
        self._save()

    def remove_item(self, key: str) -> None:
        if key in self._items:
            del self._items[key]
            self._save()

    def clear(self) -> None:
        self._items = {}
        self._save()

    def keys(self):
        return list(self._items.keys())

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode a JSON value; corrupt values are logged and read as default."""
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Failed to parse stored value for %r", key)
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value))


class MemoryStorage(LocalStorage):
    """In-memory storage with the LocalStorage interface (no file)."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.path = None
        self._items = dict(items or {})

    def _save(self) -> None:
        pass
