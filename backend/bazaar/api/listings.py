from typing import Iterable, List, Optional, Set

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from bazaar.api.deps import get_current_user_id, get_feed, get_store
from bazaar.connectors.base import ListingStore
from bazaar.core.config import get_settings
from bazaar.core.local_storage import MemoryLocalStorage
from bazaar.schemas.listing import FeedPage, FeedQuery, GeoPoint, Listing, ListingOut, RelatedResponse, SortMode, Source
from bazaar.services.favorites import FavoritesService
from bazaar.services.feed import MarketplaceFeed
from bazaar.services.normalization import city_state_label
from bazaar.services.related import related_listings
from bazaar.services.search_history import SearchHistory, SearchHistoryTracker
from bazaar.services.trust import trust_badge

router = APIRouter(prefix="/v1/marketplace", tags=["marketplace"])


def to_out(listing: Listing, favorites: Set[str] = frozenset()) -> ListingOut:
    return ListingOut(
        **listing.model_dump(),
        key=listing.key,
        display_price=listing.display_price,
        location_label=city_state_label(listing.location),
        cover_image=listing.cover_image,
        badge=trust_badge(listing),
        favorite=listing.key in favorites,
    )


def _failed_page() -> JSONResponse:
    page = FeedPage(items=[], count=0, visible=0, end_of_list=True, failed=True)
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=page.model_dump(mode="json"))


async def _history_for(store: ListingStore, user_id: Optional[str], anonymous: Iterable[str]) -> List[str]:
    max_length = get_settings().search_history_max
    if not user_id:
        return SearchHistory(anonymous, max_length=max_length).terms
    tracker = SearchHistoryTracker(store, MemoryLocalStorage(), user_id=user_id, max_length=max_length)
    return await tracker.load()


@router.get("", response_model=FeedPage)
async def marketplace_feed(
    q: str = "",
    min_price: Optional[str] = None,
    max_price: Optional[str] = None,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    radius: Optional[float] = Query(default=None, ge=0),
    sort: Optional[SortMode] = None,
    visible: Optional[int] = Query(default=None, ge=0),
    history: List[str] = Query(default=[]),
    feed: MarketplaceFeed = Depends(get_feed),
    store: ListingStore = Depends(get_store),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    settings = get_settings()
    snapshot = await feed.load()
    if snapshot.failed:
        return _failed_page()

    center = GeoPoint(lat=lat, lon=lon) if lat is not None and lon is not None else None
    query = FeedQuery(
        text=q,
        min_price=min_price,
        max_price=max_price,
        center=center,
        radius_miles=radius if radius is not None else settings.default_radius_miles,
        sort=sort,
    )
    results = feed.search(query, await _history_for(store, user_id, history))
    shown = min(settings.page_size if visible is None else visible, len(results))
    favorites = await FavoritesService(store).keys(user_id)
    return FeedPage(
        items=[to_out(listing, favorites) for listing in results[:shown]],
        count=len(results),
        visible=shown,
        end_of_list=shown >= len(results),
    )


@router.post("/refresh", response_model=FeedPage)
async def refresh_marketplace(feed: MarketplaceFeed = Depends(get_feed)):
    snapshot = await feed.refresh(invalidate=True)
    if snapshot.failed:
        return _failed_page()
    count = len(snapshot.listings)
    return FeedPage(items=[], count=count, visible=0, end_of_list=count == 0)


@router.get("/related", response_model=RelatedResponse)
async def related(
    source: Source,
    listing_id: str = Query(alias="id"),
    feed: MarketplaceFeed = Depends(get_feed),
) -> RelatedResponse:
    snapshot = await feed.load()
    listing = snapshot.find(f"{source}:{listing_id}")
    if listing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found")
    return RelatedResponse(items=[to_out(item) for item in related_listings(snapshot.listings, listing)])
