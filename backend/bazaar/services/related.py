from typing import Iterable, List

from bazaar.schemas.listing import Listing
from bazaar.services.normalization import city_state_label
from bazaar.services.ranking import sort_listings


RELATED_LIMIT = 12


def related_listings(listings: Iterable[Listing], listing: Listing, limit: int = RELATED_LIMIT) -> List[Listing]:
    """Other listings sharing the category, else the location, else the newest ones."""
    others = [other for other in listings if other.key != listing.key]
    category = (listing.category or "").strip().lower()
    location = city_state_label(listing.location).lower()
    if category:
        candidates = [other for other in others if category in (other.category or "").lower()]
    elif location:
        candidates = [other for other in others if location in (other.location or "").lower()]
    else:
        candidates = sort_listings(others)
    return list({other.key: other for other in candidates}.values())[:limit]
