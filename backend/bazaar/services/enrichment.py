import json
import logging
from typing import Iterable, List, Mapping, Optional

from bazaar.schemas.listing import BusinessRecord, Listing

logger = logging.getLogger(__name__)


def referenced_business_ids(listings: Iterable[Listing]) -> List[str]:
    return sorted({listing.business_id for listing in listings if listing.business_id})


def business_location(record: BusinessRecord) -> Optional[str]:
    address = record.address
    if isinstance(address, str):
        try:
            address = json.loads(address)
        except ValueError:
            return None
    if not isinstance(address, Mapping):
        return None
    city = str(address.get("city") or "").strip()
    state = str(address.get("state") or "").strip()
    joined = ", ".join(part for part in (city, state) if part)
    return joined or None


def enrich_listings(listings: Iterable[Listing], businesses: Mapping[str, BusinessRecord]) -> List[Listing]:
    """Attach verification, plan and business city/state to owned listings.

    Only ``location``, ``business_verified`` and ``business_plan`` may change;
    listings whose business is unknown keep their defaults.
    """
    enriched: List[Listing] = []
    for listing in listings:
        record = businesses.get(listing.business_id) if listing.business_id else None
        if record is None:
            enriched.append(listing)
            continue
        # Business city/state replaces the listing location, even a more specific street address.
        location = business_location(record) or listing.location
        enriched.append(
            listing.model_copy(
                update={
                    "location": location,
                    "business_verified": bool(record.is_verified),
                    "business_plan": record.plan or None,
                }
            )
        )
    return enriched
