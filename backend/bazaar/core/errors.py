class BazaarError(Exception):
    """Base class for errors raised by the marketplace feed."""


class StoreError(BazaarError):
    """A read or write against the listing data store failed."""


class GeocodingError(BazaarError):
    """The geocoding service could not be reached or answered garbage."""
