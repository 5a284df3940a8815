from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bazaar.core.errors import StoreError
from bazaar.models.listing import Business, Favorite, RawListing, SearchLogEntry, UserSearchHistory
from bazaar.schemas.listing import FavoriteRecord, Source

from .base import ListingStore


def _row_from_raw(raw: RawListing) -> Dict[str, Any]:
    row = dict(raw.raw_payload or {})
    row["id"] = raw.external_id
    row.setdefault("created_at", raw.created_at)
    return row


class SqlListingStore(ListingStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def fetch_collection(self, source: Source) -> List[Mapping[str, Any]]:
        stmt = select(RawListing).where(RawListing.source == source).order_by(desc(RawListing.created_at))
        try:
            async with self.session_factory() as db:
                raws = (await db.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to load {source} listings") from exc
        return [_row_from_raw(raw) for raw in raws]

    async def fetch_businesses(self, ids: Sequence[str]) -> List[Mapping[str, Any]]:
        if not ids:
            return []
        stmt = select(Business).where(Business.id.in_(list(ids)))
        try:
            async with self.session_factory() as db:
                businesses = (await db.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError("failed to load businesses") from exc
        return [
            {
                "id": business.id,
                "is_verified": business.is_verified,
                "plan": business.plan,
                "address": business.address,
                "lat": business.lat,
                "lon": business.lon,
            }
            for business in businesses
        ]

    async def load_search_history(self, user_id: str) -> Optional[List[str]]:
        try:
            async with self.session_factory() as db:
                record = await db.get(UserSearchHistory, user_id)
        except SQLAlchemyError as exc:
            raise StoreError("failed to load search history") from exc
        return list(record.searches or []) if record else None

    async def save_search_history(self, user_id: str, searches: Sequence[str]) -> None:
        try:
            async with self.session_factory() as db:
                record = await db.get(UserSearchHistory, user_id)
                if record:
                    record.searches = list(searches)
                else:
                    db.add(UserSearchHistory(user_id=user_id, searches=list(searches)))
                await db.commit()
        except SQLAlchemyError as exc:
            raise StoreError("failed to save search history") from exc

    async def log_search(self, user_id: Optional[str], term: str, radius_miles: Optional[float]) -> None:
        try:
            async with self.session_factory() as db:
                db.add(SearchLogEntry(user_id=user_id, search_term=term, radius_miles=radius_miles))
                await db.commit()
        except SQLAlchemyError as exc:
            raise StoreError("failed to log search") from exc

    async def list_favorites(self, user_id: str) -> List[FavoriteRecord]:
        stmt = select(Favorite).where(Favorite.user_id == user_id).order_by(Favorite.created_at, Favorite.id)
        try:
            async with self.session_factory() as db:
                favorites = (await db.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError("failed to load favorites") from exc
        return [FavoriteRecord(key=fav.item_key, snapshot=dict(fav.item_snapshot or {})) for fav in favorites]

    async def add_favorite(self, user_id: str, record: FavoriteRecord) -> None:
        stmt = select(Favorite).where(Favorite.user_id == user_id, Favorite.item_key == record.key)
        try:
            async with self.session_factory() as db:
                existing = (await db.execute(stmt)).scalars().first()
                if existing:
                    return
                db.add(Favorite(user_id=user_id, item_key=record.key, item_snapshot=record.snapshot))
                await db.commit()
        except SQLAlchemyError as exc:
            raise StoreError("failed to save favorite") from exc

    async def remove_favorite(self, user_id: str, key: str) -> None:
        stmt = delete(Favorite).where(Favorite.user_id == user_id, Favorite.item_key == key)
        try:
            async with self.session_factory() as db:
                await db.execute(stmt)
                await db.commit()
        except SQLAlchemyError as exc:
            raise StoreError("failed to remove favorite") from exc
