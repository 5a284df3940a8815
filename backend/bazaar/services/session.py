from typing import Any, List, Optional

from bazaar.core.config import get_settings
from bazaar.schemas.listing import FeedQuery, Listing
from bazaar.services.debounce import Debouncer
from bazaar.services.feed import MarketplaceFeed
from bazaar.services.pagination import DEFAULT_PAGE_SIZE, PaginationCursor
from bazaar.services.search_history import SearchHistoryTracker


class FeedSession:
    """One consumer's view of the feed: filter state, cursor, history and debounced search."""

    def __init__(
        self,
        feed: MarketplaceFeed,
        history: SearchHistoryTracker,
        query: Optional[FeedQuery] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        debounce_seconds: Optional[float] = None,
    ) -> None:
        self.feed = feed
        self.history = history
        self.query = query or FeedQuery()
        self.cursor = PaginationCursor(initial=page_size, step=page_size)
        if debounce_seconds is None:
            debounce_seconds = get_settings().search_debounce_ms / 1000
        self.debouncer = Debouncer(debounce_seconds)
        self.results: List[Listing] = []
        self._typed_text: Optional[str] = None

    async def start(self) -> None:
        await self.feed.load()
        await self.history.load()
        self._apply(reset_cursor=True)

    def _apply(self, reset_cursor: bool) -> None:
        self.results = self.feed.search(self.query, self.history.history.terms)
        if reset_cursor:
            self.cursor.reset(len(self.results))
        else:
            self.cursor.resize(len(self.results))

    def update(self, **changes: Any) -> None:
        """Apply filter or sort changes immediately."""
        self.query = self.query.model_copy(update=changes)
        self._apply(reset_cursor=True)

    def _set_text(self, text: str) -> None:
        self._typed_text = None
        self.update(text=text)

    def type_query(self, text: str) -> None:
        self._typed_text = text
        self.debouncer.call(self._set_text, text)

    def submit_query(self, text: Optional[str] = None) -> None:
        if text is None and self.debouncer.pending:
            text = self._typed_text
        self.debouncer.cancel()
        self._typed_text = None
        if text is not None and text != self.query.text:
            self.update(text=text)
        radius = self.query.radius_miles if self.query.center is not None else None
        if self.history.submit(self.query.text, radius) is not None:
            self._apply(reset_cursor=False)

    def sentinel_visible(self) -> int:
        return self.cursor.advance()

    @property
    def visible(self) -> List[Listing]:
        return self.cursor.window(self.results)

    @property
    def end_of_list(self) -> bool:
        return self.cursor.end_of_list

    async def refresh(self) -> None:
        self.debouncer.cancel()
        await self.feed.refresh(invalidate=True)
        self._apply(reset_cursor=True)
