"""Marketplace feed: one merged, enriched snapshot plus the per-query pipeline.

A refresh fetches the four listing collections concurrently, normalizes and
enriches them, orders them by business tier and recency, applies the
fairness shuffle and swaps the finished snapshot in. Queries only ever read
the current snapshot.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from bazaar.connectors.base import ListingStore
from bazaar.core.cache import SnapshotCache
from bazaar.core.errors import StoreError
from bazaar.schemas.listing import SOURCES, BusinessRecord, FeedQuery, Listing
from bazaar.services.enrichment import enrich_listings, referenced_business_ids
from bazaar.services.filters import filter_by_price, filter_by_radius
from bazaar.services.normalization import normalize_rows
from bazaar.services.query_expansion import expand_query, search_listings
from bazaar.services.ranking import DEFAULT_FAIRNESS_WINDOW, fairness_shuffle, sort_listings, tier_order
from bazaar.services.relevance import history_tokens, score_listings
from bazaar.services.vocabulary import Vocabulary, default_vocabulary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedSnapshot:
    listings: Tuple[Listing, ...] = ()
    failed: bool = False
    from_cache: bool = False

    def find(self, key: str) -> Optional[Listing]:
        return next((listing for listing in self.listings if listing.key == key), None)


class MarketplaceFeed:
    def __init__(
        self,
        store: ListingStore,
        cache: SnapshotCache,
        storage_base_url: str,
        cache_key: str = "marketplace:snapshot",
        vocabulary: Optional[Vocabulary] = None,
        fairness_window: int = DEFAULT_FAIRNESS_WINDOW,
        current_term_weight: int = 2,
        history_term_weight: int = 1,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.storage_base_url = storage_base_url
        self.cache_key = cache_key
        self.vocabulary = vocabulary or default_vocabulary()
        self.fairness_window = fairness_window
        self.current_term_weight = current_term_weight
        self.history_term_weight = history_term_weight
        self.rng = rng or random.Random()
        self._snapshot: Optional[FeedSnapshot] = None
        self._refresh_lock = asyncio.Lock()

    @property
    def snapshot(self) -> FeedSnapshot:
        return self._snapshot or FeedSnapshot()

    async def load(self) -> FeedSnapshot:
        """Serve the cached snapshot when it is still fresh, otherwise rebuild."""
        cached = await self.cache.get(self.cache_key)
        if cached is not None:
            logger.debug("Serving marketplace snapshot from cache (%s listings)", len(cached))
            self._snapshot = FeedSnapshot(tuple(cached), from_cache=True)
            return self._snapshot
        return await self.refresh()

    async def refresh(self, invalidate: bool = False) -> FeedSnapshot:
        async with self._refresh_lock:
            if invalidate:
                await self.cache.invalidate(self.cache_key)
            snapshot = await self._build()
            self._snapshot = snapshot
            if not snapshot.failed:
                await self.cache.set(self.cache_key, snapshot.listings)
            return snapshot

    async def _build(self) -> FeedSnapshot:
        logger.info("Refreshing marketplace snapshot")
        try:
            collections = await asyncio.gather(*(self.store.fetch_collection(source) for source in SOURCES))
        except StoreError:
            logger.exception("Failed to load marketplace listings")
            return FeedSnapshot(failed=True)

        listings: List[Listing] = []
        for source, rows in zip(SOURCES, collections):
            normalized = normalize_rows(source, rows, self.storage_base_url)
            logger.info("Loaded %s %s listings", len(normalized), source)
            listings.extend(normalized)

        businesses = await self._lookup_businesses(referenced_business_ids(listings))
        enriched = enrich_listings(listings, businesses)
        ordered = fairness_shuffle(tier_order(enriched), self.fairness_window, self.rng)
        return FeedSnapshot(tuple(ordered))

    async def _lookup_businesses(self, ids: Sequence[str]) -> Mapping[str, BusinessRecord]:
        if not ids:
            return {}
        try:
            rows = await self.store.fetch_businesses(ids)
        except StoreError:
            logger.warning("Business lookup failed; listings keep default metadata", exc_info=True)
            return {}
        records: Dict[str, BusinessRecord] = {}
        for row in rows:
            try:
                record = BusinessRecord.model_validate({**row, "id": str(row.get("id"))})
            except ValidationError:
                logger.warning("Skipping unreadable business row %r", row.get("id"), exc_info=True)
                continue
            records[record.id] = record
        return records

    def search(self, query: FeedQuery, history: Sequence[str] = ()) -> List[Listing]:
        """Expand, filter, score and sort the current snapshot for ``query``."""
        expanded = expand_query(query.text, self.vocabulary)
        matched = search_listings(self.snapshot.listings, expanded, self.vocabulary)
        priced = filter_by_price(matched, query.min_price, query.max_price)
        nearby = filter_by_radius(priced, query.center, query.radius_miles)
        scores = score_listings(
            nearby,
            expanded.tokens,
            history_tokens(history),
            current_weight=self.current_term_weight,
            history_weight=self.history_term_weight,
        )
        return sort_listings(nearby, scores, query.sort, query.center)
