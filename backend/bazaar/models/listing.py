import datetime as dt
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, UniqueConstraint

from bazaar.db.base import Base


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class RawListing(Base):
    """One row of a listing collection, stored as the payload the source wrote."""

    __tablename__ = "raw_listings"
    __table_args__ = (UniqueConstraint("source", "external_id", name="uq_raw_listing_source_external"),)

    id = Column(Integer, primary_key=True)
    source = Column(String, nullable=False, index=True)
    external_id = Column(String, nullable=False)
    raw_payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Business(Base):
    __tablename__ = "businesses"

    id = Column(String, primary_key=True)
    name = Column(String)
    is_verified = Column(Boolean, default=False, nullable=False)
    plan = Column(String)
    address = Column(JSON)
    lat = Column(Float)
    lon = Column(Float)


class UserSearchHistory(Base):
    __tablename__ = "user_marketplace_searches"

    user_id = Column(String, primary_key=True)
    searches = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class SearchLogEntry(Base):
    __tablename__ = "marketplace_search_log"

    id = Column(Integer, primary_key=True)
    user_id = Column(String)
    search_term = Column(String, nullable=False)
    radius_miles = Column(Float)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Favorite(Base):
    __tablename__ = "user_marketplace_favorites"
    __table_args__ = (UniqueConstraint("user_id", "item_key", name="uq_favorite_user_item"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    item_key = Column(String, nullable=False)
    item_snapshot = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
