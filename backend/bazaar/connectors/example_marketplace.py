from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from bazaar.schemas.listing import SOURCES, FavoriteRecord, Source

from .base import ListingStore


def _demo_collections() -> Dict[Source, List[Mapping[str, Any]]]:
    # Synthetic rows for local development only.
    return {
        "retail": [
            {
                "id": "r-1",
                "name": "Winter Coat",
                "amount": "$40",
                "city": "Hoboken, NJ",
                "type": "Clothing",
                "images": '["coats/winter.jpg"]',
                "business_id": "b-1",
                "createdAt": "2024-03-01T10:00:00Z",
            },
        ],
        "vehicle": [
            {
                "id": "v-1",
                "vehicle_name": "2020 Sedan",
                "price": 15000,
                "address": "Newark, NJ",
                "latitude": 40.7357,
                "longitude": -74.1724,
                "photos": ["sedan/front.jpg", "sedan/back.jpg"],
                "business_id": "b-2",
                "created_at": "2024-03-02T10:00:00Z",
            },
        ],
        "real_estate": [
            {
                "id": "h-1",
                "title": "Two bedroom apartment",
                "price": "2,100/mo",
                "address": "12 Main St, Jersey City, NJ 07302",
                "property_type": "Apartment",
                "created_at": "2024-02-20T10:00:00Z",
            },
        ],
        "individual": [
            {
                "id": "i-1",
                "title": "Road bike",
                "price": "250",
                "location": "Brooklyn, NY",
                "image_urls": ["bikes/road.jpg"],
                "location_lat": 40.6782,
                "location_lng": -73.9442,
                "user_id": "u-1",
                "created_at": "2024-03-03T10:00:00Z",
            },
        ],
    }


def _demo_businesses() -> List[Mapping[str, Any]]:
    return [
        {"id": "b-1", "is_verified": True, "plan": "premium", "address": {"city": "Hoboken", "state": "NJ"}},
        {"id": "b-2", "is_verified": False, "plan": "starter", "address": '{"city": "Newark", "state": "NJ"}'},
    ]


class ExampleMarketplaceStore(ListingStore):
    """In-process store seeded with synthetic rows."""

    def __init__(
        self,
        collections: Optional[Mapping[Source, Iterable[Mapping[str, Any]]]] = None,
        businesses: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> None:
        seeded = _demo_collections() if collections is None else collections
        self.collections: Dict[Source, List[Mapping[str, Any]]] = {
            source: list(seeded.get(source, [])) for source in SOURCES
        }
        self.businesses: Dict[str, Mapping[str, Any]] = {
            str(row["id"]): row for row in (_demo_businesses() if businesses is None else businesses)
        }
        self.histories: Dict[str, List[str]] = {}
        self.search_log: List[Tuple[Optional[str], str, Optional[float], datetime]] = []
        self.favorites: Dict[str, List[FavoriteRecord]] = {}
        self.business_requests: List[List[str]] = []

    async def fetch_collection(self, source: Source) -> List[Mapping[str, Any]]:
        return [dict(row) for row in self.collections[source]]

    async def fetch_businesses(self, ids: Sequence[str]) -> List[Mapping[str, Any]]:
        self.business_requests.append(list(ids))
        return [dict(self.businesses[i]) for i in ids if i in self.businesses]

    async def load_search_history(self, user_id: str) -> Optional[List[str]]:
        history = self.histories.get(user_id)
        return list(history) if history is not None else None

    async def save_search_history(self, user_id: str, searches: Sequence[str]) -> None:
        self.histories[user_id] = list(searches)

    async def log_search(self, user_id: Optional[str], term: str, radius_miles: Optional[float]) -> None:
        self.search_log.append((user_id, term, radius_miles, datetime.now(timezone.utc)))

    async def list_favorites(self, user_id: str) -> List[FavoriteRecord]:
        return list(self.favorites.get(user_id, []))

    async def add_favorite(self, user_id: str, record: FavoriteRecord) -> None:
        existing = self.favorites.setdefault(user_id, [])
        if all(item.key != record.key for item in existing):
            existing.append(record)

    async def remove_favorite(self, user_id: str, key: str) -> None:
        self.favorites[user_id] = [item for item in self.favorites.get(user_id, []) if item.key != key]
