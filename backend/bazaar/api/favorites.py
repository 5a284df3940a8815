from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from bazaar.api.deps import get_current_user_id, get_feed, get_store
from bazaar.connectors.base import ListingStore
from bazaar.schemas.listing import FavoritesOut, FavoriteToggleOut, Source
from bazaar.services.favorites import FavoritesService
from bazaar.services.feed import MarketplaceFeed

router = APIRouter(prefix="/v1/marketplace/favorites", tags=["favorites"])


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign in to save favorites")
    return user_id


@router.get("", response_model=FavoritesOut)
async def list_favorites(
    store: ListingStore = Depends(get_store),
    user_id: Optional[str] = Depends(get_current_user_id),
) -> FavoritesOut:
    return FavoritesOut(items=await FavoritesService(store).list(_require_user(user_id)))


@router.post("/{source}/{listing_id}", response_model=FavoriteToggleOut)
async def toggle_favorite(
    source: Source,
    listing_id: str,
    feed: MarketplaceFeed = Depends(get_feed),
    store: ListingStore = Depends(get_store),
    user_id: Optional[str] = Depends(get_current_user_id),
) -> FavoriteToggleOut:
    user = _require_user(user_id)
    snapshot = await feed.load()
    listing = snapshot.find(f"{source}:{listing_id}")
    if listing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found")
    favorite = await FavoritesService(store).toggle(user, listing)
    return FavoriteToggleOut(key=listing.key, favorite=bool(favorite))
