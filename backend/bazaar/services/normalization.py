"""Map the four listing collections onto the canonical ``Listing`` shape.

Each collection names the same concept differently (``title`` / ``name`` /
``item_name`` ...). The alias tables below are resolved once here; nothing
downstream ever looks at a raw row.
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from bazaar.schemas.listing import Listing, Source


@dataclass(frozen=True)
class SourceShape:
    source: Source
    bucket: str
    slug_prefix: str
    default_title: str
    default_category: str
    title: Tuple[str, ...] = ("title",)
    price: Tuple[str, ...] = ("price",)
    location: Tuple[str, ...] = ("location",)
    category: Tuple[str, ...] = ("category",)
    condition: Tuple[str, ...] = ("condition",)
    description: Tuple[str, ...] = ("description",)
    images: Tuple[str, ...] = ("images", "image_url", "image_urls", "photos")
    lat: Tuple[str, ...] = ("lat", "latitude")
    lon: Tuple[str, ...] = ("lon", "longitude")
    created_at: Tuple[str, ...] = ("created_at", "createdAt")
    slug: Tuple[str, ...] = ("slug", "item_slug", "listing_slug")
    business_id: Tuple[str, ...] = ("business_id",)
    user_id: Tuple[str, ...] = ()


SOURCE_SHAPES = {
    "retail": SourceShape(
        source="retail",
        bucket="retail-items",
        slug_prefix="retail",
        default_title="Retail item",
        default_category="Retail",
        title=("title", "name", "item_name"),
        price=("price", "amount", "cost"),
        location=("location", "city", "address"),
        category=("category", "type"),
        condition=("condition", "item_condition"),
        description=("description", "details"),
    ),
    "vehicle": SourceShape(
        source="vehicle",
        bucket="car-listings",
        slug_prefix="vehicle",
        default_title="Vehicle listing",
        default_category="Dealership",
        title=("title", "name", "vehicle_name", "model"),
        price=("price", "amount", "cost"),
        location=("location", "city", "address"),
        category=("category", "type"),
        condition=("condition", "item_condition"),
        description=("description", "details", "notes"),
    ),
    "real_estate": SourceShape(
        source="real_estate",
        bucket="real-estate-listings",
        slug_prefix="real-estate",
        default_title="Real estate listing",
        default_category="Real Estate",
        location=("address", "location"),
        category=("property_type", "category"),
        condition=(),
        slug=(),
    ),
    "individual": SourceShape(
        source="individual",
        bucket="marketplace-images",
        slug_prefix="individual",
        default_title="Listing",
        default_category="General",
        images=("image_urls", "imageUrls"),
        lat=("location_lat", "lat", "latitude"),
        lon=("location_lng", "lon", "longitude"),
        created_at=("created_at",),
        slug=(),
        business_id=(),
        user_id=("user_id",),
    ),
}

ZIP_SUFFIX = re.compile(r"\s*\d{5}(-\d{4})?\s*$")
STATE_CODE = re.compile(r"^[A-Za-z]{2}$")


def _first(row: Mapping[str, Any], aliases: Iterable[str], skip_blank: bool = True) -> Any:
    for alias in aliases:
        value = row.get(alias)
        if value is None:
            continue
        if skip_blank and isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, Mapping):
        joined = ", ".join(str(value[part]) for part in ("city", "state") if value.get(part))
        return joined or None
    text = str(value).strip()
    return text or None


def _coordinate(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def storage_url(base_url: str, bucket: str, path: Any) -> str:
    if path is None:
        return ""
    path = str(path).strip()
    if not path:
        return ""
    if path.startswith("http"):
        return path
    return f"{base_url.rstrip('/')}/{bucket}/{path.lstrip('/')}"


def resolve_images(value: Any, bucket: str, base_url: str) -> Tuple[str, ...]:
    """Accept a list, a JSON-encoded list, or a single path."""
    if not value:
        return ()
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            decoded = None
        items = decoded if isinstance(decoded, list) else [value]
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        return ()
    urls = (storage_url(base_url, bucket, item) for item in items if item is not None)
    return tuple(url for url in urls if url)


def normalize_row(source: Source, row: Mapping[str, Any], storage_base_url: str) -> Listing:
    shape = SOURCE_SHAPES[source]
    listing_id = str(row.get("id") if row.get("id") is not None else "")
    price = _first(row, shape.price, skip_blank=False)
    if isinstance(price, bool) or (price is not None and not isinstance(price, (int, float, str))):
        price = str(price)

    return Listing(
        id=listing_id,
        source=source,
        title=_text(_first(row, shape.title)) or shape.default_title,
        category=_text(_first(row, shape.category)) or shape.default_category,
        condition=_text(_first(row, shape.condition)),
        description=_text(_first(row, shape.description)),
        price=price if price is not None else "",
        location=_text(_first(row, shape.location)) or "",
        image_urls=resolve_images(_first(row, shape.images), shape.bucket, storage_base_url),
        lat=_coordinate(_first(row, shape.lat)),
        lon=_coordinate(_first(row, shape.lon)),
        created_at=parse_timestamp(_first(row, shape.created_at)),
        slug=_text(_first(row, shape.slug)) or f"{shape.slug_prefix}-{listing_id}",
        business_id=_text(_first(row, shape.business_id)),
        user_id=_text(_first(row, shape.user_id)),
    )


def normalize_rows(source: Source, rows: Iterable[Mapping[str, Any]], storage_base_url: str) -> List[Listing]:
    return [normalize_row(source, row, storage_base_url) for row in rows]


def city_state_label(location: Optional[str]) -> str:
    """Reduce a full address to ``"City, ST"`` for card display."""
    text = (location or "").strip()
    if not text:
        return ""
    parts = [part.strip() for part in text.split(",") if part.strip()]
    if len(parts) < 2:
        return text
    state_part = ZIP_SUFFIX.sub("", parts[-1]).strip()
    if STATE_CODE.match(state_part):
        state = state_part
    else:
        state = state_part.split()[0] if state_part.split() else state_part
    city = parts[-2]
    return ", ".join(part for part in (city, state) if part) or text
