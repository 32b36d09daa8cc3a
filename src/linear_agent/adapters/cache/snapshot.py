"""
Workspace Snapshot Cache - TTL cache for workspace metadata.

Holds at most one WorkspaceSnapshot. A fresh snapshot is assembled from
concurrent tracker reads and swapped in as a single assignment, so readers
always see either the previous snapshot or the new one in full.

Example:
    >>> cache = WorkspaceSnapshotCache(tracker, ttl=300)
    >>> snapshot = await cache.fetch()      # hits the tracker
    >>> snapshot is await cache.fetch()     # served from cache
    True
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from linear_agent.core.domain.entities import WorkflowState, WorkspaceSnapshot
from linear_agent.core.ports.issue_tracker import IssueTrackerPort


T = TypeVar("T")

DEFAULT_TTL = 300.0
MAX_RECENT_ISSUES = 10
MAX_LABELS = 50
MAX_PROJECTS = 50


@dataclass
class SnapshotCacheStats:
    """Counters for cache effectiveness."""

    hits: int = 0
    misses: int = 0
    refreshes: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "refreshes": self.refreshes,
            "hit_rate": round(self.hit_rate, 4),
        }


class WorkspaceSnapshotCache:
    """
    Single-entry TTL cache of workspace metadata.

    Sub-collection failures degrade to empty collections and are logged;
    a failure fetching the current user aborts the fetch and leaves any
    previously cached snapshot untouched.
    """

    def __init__(
        self,
        tracker: IssueTrackerPort,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            tracker: Source of workspace metadata
            ttl: Seconds a snapshot stays fresh
            clock: Monotonic clock, injectable for tests
        """
        self.tracker = tracker
        self.ttl = ttl
        self._clock = clock
        self._snapshot: WorkspaceSnapshot | None = None
        self._fetched_at: float = 0.0
        self.stats = SnapshotCacheStats()
        self.logger = logging.getLogger("WorkspaceSnapshotCache")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def fetch(self) -> WorkspaceSnapshot:
        """Return the cached snapshot if fresh, otherwise build a new one."""
        cached = self.get_cached()
        if cached is not None:
            self.stats.hits += 1
            return cached

        self.stats.misses += 1
        snapshot = await self._build_snapshot()

        # Swap in one step; no await between building and assigning.
        self._snapshot = snapshot
        self._fetched_at = self._clock()
        self.stats.refreshes += 1

        self.logger.info(
            f"Workspace snapshot refreshed: {len(snapshot.teams)} teams, "
            f"{len(snapshot.projects)} projects, {len(snapshot.labels)} labels, "
            f"{len(snapshot.states)} states"
        )
        return snapshot

    def get_cached(self) -> WorkspaceSnapshot | None:
        """Return the cached snapshot without I/O, or None if empty or expired."""
        if self._snapshot is None:
            return None
        if self._clock() - self._fetched_at >= self.ttl:
            return None
        return self._snapshot

    def invalidate(self) -> None:
        """Drop the cached snapshot so the next fetch goes to the tracker."""
        if self._snapshot is not None:
            self.logger.debug("Workspace snapshot invalidated")
        self._snapshot = None
        self._fetched_at = 0.0

    @property
    def age(self) -> float | None:
        """Seconds since the cached snapshot was fetched, or None if empty."""
        if self._snapshot is None:
            return None
        return self._clock() - self._fetched_at

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    async def _build_snapshot(self) -> WorkspaceSnapshot:
        self.logger.debug("Fetching workspace snapshot")

        teams, projects, labels, recent_issues, user = await asyncio.gather(
            self._degrade("teams", self.tracker.list_teams),
            self._degrade("projects", self.tracker.list_projects),
            self._degrade("labels", self.tracker.list_labels),
            self._degrade(
                "recent issues", lambda: self.tracker.list_recent_issues(MAX_RECENT_ISSUES)
            ),
            self.tracker.get_current_user(),
        )

        per_team_states = await asyncio.gather(
            *(
                self._degrade(
                    f"workflow states for team {team.key}",
                    lambda team_id=team.id: self.tracker.list_workflow_states(team_id),
                )
                for team in teams
            )
        )

        return WorkspaceSnapshot(
            user=user,
            teams=tuple(teams),
            projects=tuple(projects[:MAX_PROJECTS]),
            labels=tuple(labels[:MAX_LABELS]),
            states=self._dedupe_states(per_team_states),
            recent_issues=tuple(recent_issues[:MAX_RECENT_ISSUES]),
        )

    async def _degrade(self, what: str, fetch: Callable[[], Awaitable[list[T]]]) -> list[T]:
        """Run a sub-collection fetch, returning an empty list on failure."""
        try:
            return list(await fetch())
        except Exception as e:
            self.logger.warning(f"Failed to fetch {what}, continuing without them: {e}")
            return []

    @staticmethod
    def _dedupe_states(
        per_team_states: list[list[WorkflowState]],
    ) -> tuple[WorkflowState, ...]:
        """Flatten team states keeping the first state seen for each name."""
        seen: set[str] = set()
        states: list[WorkflowState] = []
        for team_states in per_team_states:
            for state in team_states:
                if state.name not in seen:
                    seen.add(state.name)
                    states.append(state)
        return tuple(states)
