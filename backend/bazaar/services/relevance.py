from typing import Dict, Iterable, List, Sequence

from bazaar.schemas.listing import Listing
from bazaar.services.query_expansion import tokenize


MIN_HISTORY_TOKEN_LENGTH = 2


def history_tokens(history: Iterable[str]) -> List[str]:
    tokens = (token for term in history for token in tokenize(term))
    return list(dict.fromkeys(token for token in tokens if len(token) >= MIN_HISTORY_TOKEN_LENGTH))


def score_listings(
    listings: Sequence[Listing],
    query_tokens: Sequence[str],
    past_tokens: Sequence[str],
    current_weight: int = 2,
    history_weight: int = 1,
) -> Dict[str, int]:
    """Score each listing by the query and history words its text contains.

    Returns scores keyed by the listing's composite key. Scoring never drops
    a listing; unmatched listings score 0.
    """
    current = set(query_tokens)
    words = list(dict.fromkeys([*query_tokens, *past_tokens]))
    scores: Dict[str, int] = {}
    for listing in listings:
        text = listing.searchable_text()
        score = 0
        for word in words:
            if word in text:
                score += current_weight if word in current else history_weight
        scores[listing.key] = score
    return scores
