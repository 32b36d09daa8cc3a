"""
Cache Module - Caching layer for workspace metadata.

Example:
    >>> from linear_agent.adapters.cache import WorkspaceSnapshotCache
    >>>
    >>> cache = WorkspaceSnapshotCache(tracker, ttl=300)
    >>>
    >>> # First call hits the API
    >>> snapshot = await cache.fetch()
    >>>
    >>> # Second call uses the cache
    >>> snapshot = await cache.fetch()
"""

from .snapshot import (
    DEFAULT_TTL,
    MAX_LABELS,
    MAX_PROJECTS,
    MAX_RECENT_ISSUES,
    SnapshotCacheStats,
    WorkspaceSnapshotCache,
)


__all__ = [
    "DEFAULT_TTL",
    "MAX_LABELS",
    "MAX_PROJECTS",
    "MAX_RECENT_ISSUES",
    "SnapshotCacheStats",
    "WorkspaceSnapshotCache",
]
