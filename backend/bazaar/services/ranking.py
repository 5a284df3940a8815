"""Ordering of the marketplace feed.

Two orderings exist. ``tier_order`` plus ``fairness_shuffle`` build the
default feed once per refresh. ``sort_listings`` runs on every query change
over whatever survived filtering.
"""

import random
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from bazaar.schemas.listing import GeoPoint, Listing, SortMode
from bazaar.services.filters import distance_from


PLAN_RANK = {
    "premium": 4,
    "growth": 3,
    "starter": 2,
    "free": 1,
}
DEFAULT_FAIRNESS_WINDOW = 8


def plan_rank(plan: Optional[str]) -> int:
    return PLAN_RANK.get((plan or "").strip().lower(), 0)


def _created(listing: Listing) -> float:
    return listing.created_at.timestamp() if listing.created_at else float("-inf")


def tier_order(listings: Iterable[Listing]) -> List[Listing]:
    return sorted(listings, key=lambda listing: (-plan_rank(listing.business_plan), -_created(listing)))


def fairness_shuffle(
    listings: Sequence[Listing],
    window: int = DEFAULT_FAIRNESS_WINDOW,
    rng: Optional[random.Random] = None,
) -> List[Listing]:
    """Fisher-Yates shuffle inside consecutive windows; windows keep their order."""
    if window < 1:
        raise ValueError("window must be positive")
    rng = rng or random.Random()
    result: List[Listing] = []
    for start in range(0, len(listings), window):
        chunk = list(listings[start : start + window])
        for j in range(len(chunk) - 1, 0, -1):
            k = rng.randrange(j + 1)
            chunk[j], chunk[k] = chunk[k], chunk[j]
        result.extend(chunk)
    return result


def _sort_key(
    scores: Mapping[str, int], sort: Optional[SortMode], center: Optional[GeoPoint]
) -> Callable[[Listing], Tuple]:
    def key(listing: Listing) -> Tuple:
        score = -scores.get(listing.key, 0)
        newest = -_created(listing)
        if sort in ("price_low", "price_high"):
            price = listing.price_value
            if price is None:
                return (score, 1, 0.0, newest)
            return (score, 0, price if sort == "price_low" else -price, newest)
        if sort == "newest":
            return (score, newest)
        if center is not None:
            distance = distance_from(center, listing)
            if distance is None:
                return (score, 1, 0.0, newest)
            return (score, 0, distance, newest)
        return (score, newest)

    return key


def sort_listings(
    listings: Iterable[Listing],
    scores: Optional[Dict[str, int]] = None,
    sort: Optional[SortMode] = None,
    center: Optional[GeoPoint] = None,
) -> List[Listing]:
    """Relevance first, then the chosen sort mode, else distance, else recency."""
    return sorted(listings, key=_sort_key(scores or {}, sort, center))
