from typing import Any, Iterable, List, Optional

from bazaar.schemas.listing import GeoPoint, Listing
from bazaar.services.geo import haversine_miles
from bazaar.services.pricing import parse_price


def _bound(value: Any) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_price(value)


def filter_by_price(listings: Iterable[Listing], min_price: Any = None, max_price: Any = None) -> List[Listing]:
    """Keep listings inside ``[min_price, max_price]``.

    Either bound may be omitted. While a bound is active, listings without a
    parseable price are dropped.
    """
    low = _bound(min_price)
    high = _bound(max_price)
    if low is None and high is None:
        return list(listings)
    kept: List[Listing] = []
    for listing in listings:
        value = listing.price_value
        if value is None:
            continue
        if low is not None and value < low:
            continue
        if high is not None and value > high:
            continue
        kept.append(listing)
    return kept


def distance_from(center: GeoPoint, listing: Listing) -> Optional[float]:
    if not listing.has_coordinates:
        return None
    return haversine_miles(center.lat, center.lon, listing.lat, listing.lon)


def filter_by_radius(listings: Iterable[Listing], center: Optional[GeoPoint], radius_miles: float) -> List[Listing]:
    if center is None:
        return list(listings)
    kept: List[Listing] = []
    for listing in listings:
        distance = distance_from(center, listing)
        if distance is None or distance <= radius_miles:
            kept.append(listing)
    return kept
