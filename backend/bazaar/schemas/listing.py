from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bazaar.services.pricing import display_price, parse_price


Source = Literal["retail", "vehicle", "real_estate", "individual"]
SOURCES: Tuple[Source, ...] = ("retail", "vehicle", "real_estate", "individual")

SortMode = Literal["price_low", "price_high", "newest"]

PLACEHOLDER_IMAGE = "/placeholder.jpg"


class Listing(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    source: Source
    title: str
    category: Optional[str] = None
    condition: Optional[str] = None
    description: Optional[str] = None
    price: Union[float, int, str] = ""
    location: str = ""
    image_urls: Tuple[str, ...] = ()
    lat: Optional[float] = None
    lon: Optional[float] = None
    created_at: Optional[datetime] = None
    slug: str = ""
    business_id: Optional[str] = None
    user_id: Optional[str] = None
    business_verified: bool = False
    business_plan: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.source}:{self.id}"

    @property
    def cover_image(self) -> str:
        return self.image_urls[0] if self.image_urls else PLACEHOLDER_IMAGE

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def price_value(self) -> Optional[float]:
        return parse_price(self.price)

    @property
    def display_price(self) -> str:
        return display_price(self.price)

    def searchable_text(self) -> str:
        parts = [self.title, self.category, self.location, self.description]
        return " ".join(part or "" for part in parts).strip().lower()


class BusinessRecord(BaseModel):
    id: str
    is_verified: bool = False
    plan: Optional[str] = None
    address: Optional[Union[Dict[str, Any], str]] = None
    lat: Optional[float] = None
    lon: Optional[float] = None

    @field_validator("is_verified", mode="before")
    @classmethod
    def _null_is_unverified(cls, value: Any) -> Any:
        return False if value is None else value


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float
    label: Optional[str] = None


class FeedQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""
    min_price: Optional[Union[float, str]] = None
    max_price: Optional[Union[float, str]] = None
    center: Optional[GeoPoint] = None
    radius_miles: float = 50.0
    sort: Optional[SortMode] = None


class FavoriteRecord(BaseModel):
    key: str
    snapshot: Dict[str, Any]


class ListingOut(BaseModel):
    key: str
    id: str
    source: Source
    slug: str
    title: str
    category: Optional[str] = None
    condition: Optional[str] = None
    description: Optional[str] = None
    price: Union[float, int, str]
    display_price: str
    location: str
    location_label: str
    image_urls: List[str]
    cover_image: str
    lat: Optional[float] = None
    lon: Optional[float] = None
    created_at: Optional[datetime] = None
    business_id: Optional[str] = None
    user_id: Optional[str] = None
    business_verified: bool
    business_plan: Optional[str] = None
    badge: Optional[str] = None
    favorite: bool = False


class FeedPage(BaseModel):
    items: List[ListingOut]
    count: int
    visible: int
    end_of_list: bool
    failed: bool = False


class RelatedResponse(BaseModel):
    items: List[ListingOut]


class SearchSubmit(BaseModel):
    term: str
    radius_miles: Optional[float] = Field(default=None, ge=0)


class SearchHistoryOut(BaseModel):
    searches: List[str]


class FavoriteToggleOut(BaseModel):
    key: str
    favorite: bool


class FavoritesOut(BaseModel):
    items: List[FavoriteRecord]
