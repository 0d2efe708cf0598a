"""Tests for presence tracking."""

from photo_tournament.services.presence import PresenceService
from tests.conftest import FakeClock, InMemoryPresenceRepository


def test_touch_sweeps_stale_users() -> None:
    clock = FakeClock()
    repository = InMemoryPresenceRepository()
    service = PresenceService(repository, clock=clock)

    service.touch("old")
    clock.advance(minutes=6)
    service.touch("new")

    assert set(repository.entries) == {"new"}


def test_list_active_returns_recent_users_and_evicts_stale() -> None:
    clock = FakeClock()
    repository = InMemoryPresenceRepository()
    service = PresenceService(repository, clock=clock)
    repository.entries["stale"] = clock.now.replace(hour=11)
    repository.entries["fresh"] = clock.now

    active = service.list_active()

    assert [user.id for user in active] == ["fresh"]
    assert "stale" not in repository.entries
    assert service.count_active() == 1


def test_user_at_window_edge_is_active() -> None:
    clock = FakeClock()
    repository = InMemoryPresenceRepository()
    service = PresenceService(repository, window_seconds=300, clock=clock)

    service.touch("edge")
    clock.advance(seconds=300)

    assert service.count_active() == 1
