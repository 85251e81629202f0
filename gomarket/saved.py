"""
Saved listings and saved searches, both kept in local storage.
"""
import logging
import time
from typing import List, Optional, Set

from .data_models import SavedSearch, now_iso
from .local_storage import APPLY_SEARCH_KEY, SAVED_LISTINGS_KEY, SAVED_SEARCHES_KEY, LocalStorage

logger = logging.getLogger("gomarket.saved")


class SavedListingStore:
    """Set of saved listing ids."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        raw = storage.get_json(SAVED_LISTINGS_KEY, [])
        if not isinstance(raw, list):
            logger.error("Failed to parse saved listings, resetting")
            storage.remove_item(SAVED_LISTINGS_KEY)
            raw = []
        self._ids: Set[str] = {str(i) for i in raw}

    @property
    def ids(self) -> Set[str]:
        return set(self._ids)

    def is_saved(self, listing_id: str) -> bool:
        return listing_id in self._ids

    def toggle(self, listing_id: str) -> bool:
        """Flip the saved state of a listing and return the new state."""
        if listing_id in self._ids:
            self._ids.discard(listing_id)
            saved = False
        else:
            self._ids.add(listing_id)
            saved = True
        self.storage.set_json(SAVED_LISTINGS_KEY, sorted(self._ids))
        return saved


class SavedSearchStore:
    """Saved search terms, newest first."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self._searches: List[SavedSearch] = self._load()

    def _load(self) -> List[SavedSearch]:
        raw = self.storage.get_json(SAVED_SEARCHES_KEY, [])
        try:
            return [SavedSearch.from_dict(item) for item in raw]
        except (KeyError, TypeError):
            logger.error("Failed to parse saved searches, resetting")
            self.storage.remove_item(SAVED_SEARCHES_KEY)
            return []

    def _save(self) -> None:
        self.storage.set_json(SAVED_SEARCHES_KEY, [s.to_dict() for s in self._searches])

    @property
    def searches(self) -> List[SavedSearch]:
        return list(self._searches)

    def is_saved(self, term: str) -> bool:
        wanted = term.strip().lower()
        return any(s.term.lower() == wanted for s in self._searches)

    def add(self, term: str) -> Optional[SavedSearch]:
        """Save a term. Blank terms and duplicates are ignored and return None."""
        term = term.strip()
        if not term or self.is_saved(term):
            return None
        search = SavedSearch(id=str(int(time.time() * 1000)), term=term, created_at=now_iso())
        # ids come from the clock; keep them unique when saving fast
        while any(s.id == search.id for s in self._searches):
            search.id = str(int(search.id) + 1)
        self._searches.insert(0, search)
        self._save()
        return search

    def delete(self, search_id: str) -> None:
        self._searches = [s for s in self._searches if s.id != search_id]
        self._save()

    def apply(self, term: str) -> None:
        """Hand a term to the home screen search box."""
        self.storage.set_item(APPLY_SEARCH_KEY, term)

    def consume_applied(self) -> Optional[str]:
        term = self.storage.get_item(APPLY_SEARCH_KEY)
        if term is not None:
            self.storage.remove_item(APPLY_SEARCH_KEY)
        return term
