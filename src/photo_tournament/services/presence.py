"""Presence tracking for recently active users."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from photo_tournament.domain.sessions import UserSession
from photo_tournament.services.clock import Clock, utcnow

_logger = logging.getLogger(__name__)


class PresenceRepository(Protocol):
    """Persistence interface for the shared presence map."""

    def set_last_active(self, user_id: str, timestamp: datetime) -> None:
        """Upsert the last active timestamp for a user."""

    def list_last_active(self) -> dict[str, datetime]:
        """Return every user id with its last active timestamp."""

    def remove(self, user_ids: list[str]) -> None:
        """Remove users from the presence map."""


@dataclass
class PresenceService:
    """Self-cleaning map of users seen within the liveness window."""

    repository: PresenceRepository
    window_seconds: int = 300
    clock: Clock = utcnow

    def touch(self, user_id: str, timestamp: datetime | None = None) -> None:
        """Mark a user as active and evict stale entries."""
        self.repository.set_last_active(user_id, timestamp or self.clock())
        self.sweep()

    def sweep(self) -> list[str]:
        """Remove entries older than the liveness window."""
        _, stale = self._partition()
        if stale:
            self.repository.remove(stale)
            _logger.debug("Evicted %s inactive users", len(stale))
        return stale

    def list_active(self) -> list[UserSession]:
        """Return users active within the window, evicting stale ones."""
        active, stale = self._partition()
        if stale:
            self.repository.remove(stale)
        return active

    def count_active(self) -> int:
        return len(self.list_active())

    def _partition(self) -> tuple[list[UserSession], list[str]]:
        cutoff = self.clock() - timedelta(seconds=self.window_seconds)
        active: list[UserSession] = []
        stale: list[str] = []
        for user_id, last_active in self.repository.list_last_active().items():
            if last_active >= cutoff:
                active.append(UserSession(id=user_id, last_active=last_active))
            else:
                stale.append(user_id)
        return active, stale
