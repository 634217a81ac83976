"""Error taxonomy for the core.

None of these escape the public core operations; they are raised at the
narrowest scope and converted into logged, documented results.
"""

from __future__ import annotations


class FeedLensError(Exception):
    """Base class for feedlens errors."""


class ConfigurationError(FeedLensError):
    """A stored rule or pattern is malformed."""


class ExtractionError(FeedLensError):
    """An item's fields cannot be read from the host document."""


class InteractionError(FeedLensError):
    """The menu protocol failed for one item."""


class StorageError(FeedLensError):
    """The option store is unavailable or rejected a request."""
