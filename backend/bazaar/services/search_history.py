"""Recent-search tracking.

Terms are recorded on explicit submission only (enter key, blur, submit
button), never per keystroke. Persistence and the analytics log entry run as
a detached task: their failures are logged and dropped.
"""

import asyncio
import json
import logging
from typing import Iterable, Iterator, List, Optional, Set

from bazaar.connectors.base import ListingStore
from bazaar.core.errors import StoreError
from bazaar.core.local_storage import LocalStorage

logger = logging.getLogger(__name__)

LOCAL_HISTORY_KEY = "marketplaceRecentSearches"
DEFAULT_HISTORY_MAX = 10


def normalize_term(term: Optional[str]) -> str:
    return (term or "").strip().lower()


class SearchHistory:
    def __init__(self, terms: Iterable[str] = (), max_length: int = DEFAULT_HISTORY_MAX) -> None:
        self.max_length = max_length
        self._terms: List[str] = []
        for term in terms:
            normalized = normalize_term(term)
            if normalized and normalized not in self._terms:
                self._terms.append(normalized)
        del self._terms[max_length:]

    def add(self, term: Optional[str]) -> bool:
        normalized = normalize_term(term)
        if not normalized:
            return False
        self._terms = [normalized, *(t for t in self._terms if t != normalized)][: self.max_length]
        return True

    @property
    def terms(self) -> List[str]:
        return list(self._terms)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._terms))

    def __len__(self) -> int:
        return len(self._terms)


class SearchHistoryTracker:
    def __init__(
        self,
        store: ListingStore,
        local_storage: LocalStorage,
        user_id: Optional[str] = None,
        max_length: int = DEFAULT_HISTORY_MAX,
    ) -> None:
        self.store = store
        self.local_storage = local_storage
        self.user_id = user_id
        self.history = SearchHistory(max_length=max_length)
        self._pending: Set[asyncio.Task] = set()

    async def load(self) -> List[str]:
        terms: List[str] = []
        if self.user_id:
            try:
                terms = await self.store.load_search_history(self.user_id) or []
            except StoreError:
                logger.warning("Could not load search history for %s", self.user_id, exc_info=True)
        else:
            raw = self.local_storage.get_item(LOCAL_HISTORY_KEY)
            if raw:
                try:
                    decoded = json.loads(raw)
                except ValueError:
                    decoded = []
                terms = [str(term) for term in decoded] if isinstance(decoded, list) else []
        self.history = SearchHistory(terms, max_length=self.history.max_length)
        return self.history.terms

    def record(self, term: Optional[str]) -> Optional[List[str]]:
        """Move-or-insert ``term`` at the front; returns the new history, or None for blank input."""
        if not self.history.add(term):
            return None
        terms = self.history.terms
        if not self.user_id:
            try:
                self.local_storage.set_item(LOCAL_HISTORY_KEY, json.dumps(terms))
            except Exception:
                logger.warning("Could not write local search history", exc_info=True)
        return terms

    async def persist(self, terms: List[str], term: str, radius_miles: Optional[float]) -> None:
        if self.user_id:
            try:
                await self.store.save_search_history(self.user_id, terms)
            except Exception:
                logger.warning("Dropping search history write for %s", self.user_id, exc_info=True)
        try:
            await self.store.log_search(self.user_id, normalize_term(term), radius_miles)
        except Exception:
            logger.warning("Dropping search log entry for %r", term, exc_info=True)

    def submit(self, term: Optional[str], radius_miles: Optional[float] = None) -> Optional[asyncio.Task]:
        """Record ``term`` and persist it without waiting; ``radius_miles=None`` means unlimited."""
        terms = self.record(term)
        if terms is None:
            return None
        task = asyncio.get_running_loop().create_task(self.persist(terms, normalize_term(term), radius_miles))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending))
