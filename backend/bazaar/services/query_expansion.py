"""Free-text query expansion and matching.

A query becomes one expansion group per token (the token plus its configured
synonyms). A listing matches when every group has at least one member inside
its searchable text: AND across groups, OR within a group.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from bazaar.schemas.listing import Listing, Source
from bazaar.services.vocabulary import Vocabulary


def tokenize(text: Optional[str]) -> List[str]:
    return [token.strip() for token in (text or "").lower().split() if token.strip()]


@dataclass(frozen=True)
class ExpandedQuery:
    tokens: Tuple[str, ...]
    groups: Tuple[Tuple[str, ...], ...]

    @property
    def terms(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(term for group in self.groups for term in group))

    def __bool__(self) -> bool:
        return bool(self.groups)

    def matches(self, searchable: str) -> bool:
        return all(any(term in searchable for term in group) for group in self.groups)

    def steering_source(self, vocabulary: Vocabulary) -> Optional[Source]:
        """The single source whose vocabulary the expanded terms fall into, if any."""
        terms = set(self.terms)
        wanted = [source for source, words in vocabulary.steering.items() if terms.intersection(words)]
        return wanted[0] if len(wanted) == 1 else None


def expand_query(text: Optional[str], vocabulary: Vocabulary) -> ExpandedQuery:
    tokens = tokenize(text)
    groups = tuple(
        tuple(dict.fromkeys([token, *vocabulary.synonyms.get(token, [])])) for token in tokens
    )
    return ExpandedQuery(tokens=tuple(tokens), groups=groups)


def search_listings(
    listings: Sequence[Listing], query: ExpandedQuery, vocabulary: Vocabulary
) -> List[Listing]:
    if not query:
        return list(listings)
    matched = [listing for listing in listings if query.matches(listing.searchable_text())]
    source = query.steering_source(vocabulary)
    if source is not None:
        steered = [listing for listing in matched if listing.source == source]
        if steered:
            return steered
    return matched
