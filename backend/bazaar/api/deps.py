from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bazaar.connectors.base import ListingStore
from bazaar.connectors.sql_store import SqlListingStore
from bazaar.core.cache import MemorySnapshotCache, RedisSnapshotCache, SnapshotCache
from bazaar.core.config import get_settings
from bazaar.core.security import decode_token
from bazaar.services.feed import MarketplaceFeed
from bazaar.services.geocoding import Geocoder
from bazaar.services.vocabulary import default_vocabulary, load_vocabulary

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_store() -> ListingStore:
    from bazaar.db.session import SessionLocal

    return SqlListingStore(SessionLocal)


def _build_cache() -> SnapshotCache:
    settings = get_settings()
    if settings.snapshot_cache_backend == "redis":
        return RedisSnapshotCache.from_url(settings.redis_url, settings.snapshot_cache_ttl_seconds)
    return MemorySnapshotCache(settings.snapshot_cache_ttl_seconds)


@lru_cache
def get_feed() -> MarketplaceFeed:
    settings = get_settings()
    vocabulary = load_vocabulary(settings.vocabulary_path) if settings.vocabulary_path else default_vocabulary()
    return MarketplaceFeed(
        store=get_store(),
        cache=_build_cache(),
        storage_base_url=settings.storage_base_url,
        cache_key=settings.snapshot_cache_key,
        vocabulary=vocabulary,
        fairness_window=settings.fairness_window,
        current_term_weight=settings.current_term_weight,
        history_term_weight=settings.history_term_weight,
    )


@lru_cache
def get_geocoder() -> Geocoder:
    settings = get_settings()
    return Geocoder(
        url=settings.geocoder_url,
        user_agent=settings.geocoder_user_agent,
        timeout=settings.geocoder_timeout_seconds,
    )


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Signed-in identity, or ``None`` for anonymous callers."""
    if credentials is None or not credentials.credentials:
        return None
    return decode_token(credentials.credentials)
