class RSSFetchError(Exception):
    """Raised when an RSS/Atom feed cannot be fetched."""


class ParseError(Exception):
    """Raised when a feed entry cannot be parsed into expected fields."""


class CacheCorruptError(Exception):
    """Raised when a persisted cache payload fails structural validation."""
