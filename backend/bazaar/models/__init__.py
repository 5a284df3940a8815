from .listing import (
    Business,
    Favorite,
    RawListing,
    SearchLogEntry,
    UserSearchHistory,
)

__all__ = [
    "RawListing",
    "Business",
    "UserSearchHistory",
    "SearchLogEntry",
    "Favorite",
]
