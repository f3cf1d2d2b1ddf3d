"""Debounced search and stale-response tracking, independent of any UI loop.

Every dispatched request gets a ticket stamped with a generation number.
When a response arrives it is applied only if its ticket is still the newest
one; older responses are dropped instead of cancelled.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from feature_radar.models import SearchCandidate

logger = logging.getLogger(__name__)

DEFAULT_QUIET_PERIOD = 0.3


@dataclass(frozen=True, slots=True)
class SearchTicket:
    generation: int
    query: str


@dataclass(frozen=True, slots=True)
class LoadTicket:
    generation: int
    kind: str
    item_id: str


@dataclass
class SearchSession:
    quiet_period: float = DEFAULT_QUIET_PERIOD
    clock: Callable[[], float] = time.monotonic
    query: str = ""
    results: list[SearchCandidate] = field(default_factory=list)
    selected: SearchCandidate | None = None
    error: str | None = None
    _generation: int = 0
    _changed_at: float | None = None
    _dispatched_query: str | None = None

    def update_query(self, text: str) -> None:
        self.query = text
        self._changed_at = self.clock()
        self._dispatched_query = None
        if self.selected is not None and text != self.selected.name:
            self.selected = None
        if not self._needs_search(text):
            self.results = []

    def _needs_search(self, query: str) -> bool:
        if not query.strip():
            return False
        return self.selected is None or query != self.selected.name

    def due(self) -> str | None:
        """Return the query to dispatch once input has been quiet long enough."""
        if self._changed_at is None or self._dispatched_query == self.query:
            return None
        if self.clock() - self._changed_at < self.quiet_period:
            return None
        if not self._needs_search(self.query):
            return None
        return self.query

    def begin(self, query: str) -> SearchTicket:
        self._generation += 1
        self._dispatched_query = query
        self.error = None
        return SearchTicket(generation=self._generation, query=query)

    def is_current(self, ticket: SearchTicket) -> bool:
        return (
            ticket.generation == self._generation
            and ticket.query == self.query
            and self._needs_search(ticket.query)
        )

    def complete(self, ticket: SearchTicket, results: list[SearchCandidate]) -> bool:
        if not self.is_current(ticket):
            logger.debug("Discarding stale results for %r", ticket.query)
            return False
        self.results = list(results)
        return True

    def fail(self, ticket: SearchTicket, exc: Exception) -> bool:
        """Record a failed search; the query is kept so it can be retried."""
        if not self.is_current(ticket):
            return False
        logger.warning("Search for %r failed: %s", ticket.query, exc)
        self.error = "Error searching"
        self.results = []
        return True

    def select(self, candidate: SearchCandidate) -> None:
        self._generation += 1
        self.selected = candidate
        self.query = candidate.name
        self.results = []
        self.error = None


@dataclass
class SelectionTracker:
    _generation: int = 0
    current: LoadTicket | None = None

    def begin(self, kind: str, item_id: str) -> LoadTicket:
        self._generation += 1
        self.current = LoadTicket(generation=self._generation, kind=kind, item_id=item_id)
        return self.current

    def accept(self, ticket: LoadTicket) -> bool:
        return self.current is not None and ticket.generation == self.current.generation
