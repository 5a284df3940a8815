from typing import List, Optional, Set

from bazaar.connectors.base import ListingStore
from bazaar.schemas.listing import FavoriteRecord, Listing


def favorite_record(listing: Listing) -> FavoriteRecord:
    return FavoriteRecord(
        key=listing.key,
        snapshot={
            "id": listing.id,
            "source": listing.source,
            "slug": listing.slug,
            "title": listing.title,
            "price": listing.price,
            "image": listing.cover_image,
            "location": listing.location,
        },
    )


class FavoritesService:
    def __init__(self, store: ListingStore) -> None:
        self.store = store

    async def list(self, user_id: Optional[str]) -> List[FavoriteRecord]:
        if not user_id:
            return []
        return await self.store.list_favorites(user_id)

    async def keys(self, user_id: Optional[str]) -> Set[str]:
        return {record.key for record in await self.list(user_id)}

    async def toggle(self, user_id: Optional[str], listing: Listing) -> Optional[bool]:
        """Flip the favorite state; anonymous callers get ``None`` and nothing is stored."""
        if not user_id:
            return None
        if listing.key in await self.keys(user_id):
            await self.store.remove_favorite(user_id, listing.key)
            return False
        await self.store.add_favorite(user_id, favorite_record(listing))
        return True
