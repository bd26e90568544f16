"""Error taxonomy of the reconciliation engine.

An unresolved match is not an error: matchers return ``None`` for it.
"""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for engine failures."""


class RemoteLookupFailure(ReconciliationError):
    """A remote lookup produced no data after its own retry policy ran out."""


class CacheWriteFailure(ReconciliationError):
    """Resolved relations could not be persisted twice in a row."""


class MalformedCacheData(ReconciliationError):
    """The persisted relation file cannot be parsed."""
