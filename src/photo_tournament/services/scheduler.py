"""Clock-driven tournament lifecycle."""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from photo_tournament.domain.photos import Photo
from photo_tournament.domain.tournament import TournamentSchedule, TournamentState
from photo_tournament.services.bracket import BracketService
from photo_tournament.services.clock import Clock, utcnow

_logger = logging.getLogger(__name__)

SCHEDULER_USER_ID = "scheduler"


class PhotoSource(Protocol):
    """Catalog of photos eligible for tournaments."""

    def list_photos(self) -> list[Photo]:
        """Return every photo in the catalog."""

    def get_photo(self, photo_id: int) -> Photo | None:
        """Return one photo by id, if present."""


@dataclass
class TournamentScheduler:
    """Expires stale tournaments and starts new ones on a fixed cadence."""

    bracket_service: BracketService
    photo_source: PhotoSource
    interval_minutes: int = 15
    tick_seconds: float = 60
    clock: Clock = utcnow
    last_checked_at: datetime | None = field(default=None)

    def __post_init__(self) -> None:
        if self.last_checked_at is None:
            self.last_checked_at = self.clock()

    def should_start(self) -> bool:
        """Return True when no tournament is running or the current one is over."""
        state = self.bracket_service.get_state()
        if state is None or not state.is_active:
            return True
        return self.bracket_service.is_expired(state)

    def is_time_for_next(self, last_checked_at: datetime) -> bool:
        return self.clock() - last_checked_at >= timedelta(
            minutes=self.interval_minutes
        )

    def tick(self) -> TournamentState | None:
        """Run one scheduling check and return a newly started tournament."""
        expired = self.bracket_service.check_expiration()
        if not (expired or self.is_time_for_next(self.last_checked_at)):
            return None
        if not self.should_start():
            return None
        photos = self.photo_source.list_photos()
        state = self.bracket_service.initialize(photos, started_by=SCHEDULER_USER_ID)
        self.last_checked_at = self.clock()
        _logger.info("Scheduled tournament started with %s photos", len(photos))
        return state

    def schedule(self) -> TournamentSchedule:
        """Return when the active tournament ends and when the next one starts."""
        now = self.clock()
        state = self.bracket_service.get_state()
        if state is not None and state.is_active:
            ends_at = state.started_at + timedelta(
                minutes=self.bracket_service.duration_minutes
            )
            return TournamentSchedule(
                is_active=True,
                time_remaining=max(ends_at - now, timedelta(0)),
                next_start_at=ends_at + timedelta(minutes=self.interval_minutes),
                ends_at=ends_at,
            )
        next_start_at = _next_boundary(now, self.interval_minutes)
        return TournamentSchedule(
            is_active=False,
            time_remaining=next_start_at - now,
            next_start_at=next_start_at,
        )

    async def run(self, stop_event: asyncio.Event) -> None:
        """Tick until stop_event is set."""
        _logger.info("Tournament scheduler running every %ss", self.tick_seconds)
        while not stop_event.is_set():
            try:
                await asyncio.to_thread(self.tick)
            except Exception:
                _logger.exception("Scheduled tournament check failed")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.tick_seconds)
            except TimeoutError:
                continue
        _logger.info("Tournament scheduler stopped")


def _next_boundary(now: datetime, interval_minutes: int) -> datetime:
    """Return the next wall-clock multiple of the interval within the hour."""
    hour = now.replace(minute=0, second=0, microsecond=0)
    slots = math.ceil(now.minute / interval_minutes)
    candidate = hour + timedelta(minutes=slots * interval_minutes)
    if candidate <= now:
        candidate += timedelta(minutes=interval_minutes)
    return candidate
