from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional, Sequence

from bazaar.schemas.listing import FavoriteRecord, Source


class ListingStore(ABC):
    """Async read/write contract over the backing data store.

    Implementations raise ``StoreError`` for any transport or query failure.
    """

    @abstractmethod
    async def fetch_collection(self, source: Source) -> List[Mapping[str, Any]]:  # pragma: no cover - interface
        """Return the raw rows of one listing collection, newest first."""

    @abstractmethod
    async def fetch_businesses(self, ids: Sequence[str]) -> List[Mapping[str, Any]]:  # pragma: no cover - interface
        """Return business rows for exactly the requested ids."""

    @abstractmethod
    async def load_search_history(self, user_id: str) -> Optional[List[str]]:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def save_search_history(self, user_id: str, searches: Sequence[str]) -> None:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def log_search(self, user_id: Optional[str], term: str, radius_miles: Optional[float]) -> None:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def list_favorites(self, user_id: str) -> List[FavoriteRecord]:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def add_favorite(self, user_id: str, record: FavoriteRecord) -> None:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def remove_favorite(self, user_id: str, key: str) -> None:  # pragma: no cover - interface
        ...
