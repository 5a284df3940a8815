from typing import Optional

from bazaar.schemas.listing import Listing


VERIFIED_BADGE = "Verified"
BUSINESS_BADGE = "Business"


def trust_badge(listing: Listing) -> Optional[str]:
    if not listing.business_id:
        return None
    if listing.business_verified:
        return VERIFIED_BADGE
    return BUSINESS_BADGE
