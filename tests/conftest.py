"""Shared test fixtures."""

import copy
import random
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from photo_tournament.config import Settings
from photo_tournament.containers import AppContainer
from photo_tournament.domain.photos import Photo
from photo_tournament.domain.sessions import UserSession
from photo_tournament.domain.tournament import HistoryEntry, TournamentState
from photo_tournament.domain.votes import VoteRecord
from photo_tournament.services.bracket import BracketService, TournamentRepository
from photo_tournament.services.history import HistoryArchive, HistoryRepository
from photo_tournament.services.identity import IdentityService, SessionRepository
from photo_tournament.services.presence import PresenceRepository, PresenceService
from photo_tournament.services.rankings import RankingService
from photo_tournament.services.scheduler import PhotoSource, TournamentScheduler
from photo_tournament.services.votes import VoteLedger, VoteRepository


@dataclass
class FakeClock:
    """Controllable clock for time-dependent services."""

    now: datetime = field(default_factory=lambda: datetime(2024, 5, 1, 12, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class NoShuffleRandom(random.Random):
    """Random source that keeps seeding order and returns a fixed draw."""

    def __init__(self, draw: float = 0.1) -> None:
        super().__init__(0)
        self.draw = draw

    def shuffle(self, x) -> None:  # type: ignore[no-untyped-def, override]
        return None

    def random(self) -> float:
        return self.draw


def make_photos(count: int) -> list[Photo]:
    return [
        Photo(
            id=index,
            url=f"https://images.example.com/{index}.jpg",
            description=f"Photo {index}",
            ai_rating=float(index % 10),
        )
        for index in range(1, count + 1)
    ]


@dataclass
class InMemoryTournamentRepository(TournamentRepository):
    """In-memory tournament repository that copies like a real store."""

    state: TournamentState | None = None
    saves: int = 0

    def get_tournament(self) -> TournamentState | None:
        return copy.deepcopy(self.state)

    def save_tournament(self, state: TournamentState) -> None:
        self.state = copy.deepcopy(state)
        self.saves += 1


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository for tests."""

    sessions: dict[str, UserSession] = field(default_factory=dict)
    ttls: dict[str, int] = field(default_factory=dict)

    def save_session(self, session: UserSession, ttl_seconds: int) -> None:
        self.sessions[session.id] = session
        self.ttls[session.id] = ttl_seconds


@dataclass
class InMemoryPresenceRepository(PresenceRepository):
    """In-memory presence map for tests."""

    entries: dict[str, datetime] = field(default_factory=dict)

    def set_last_active(self, user_id: str, timestamp: datetime) -> None:
        self.entries[user_id] = timestamp

    def list_last_active(self) -> dict[str, datetime]:
        return dict(self.entries)

    def remove(self, user_ids: list[str]) -> None:
        for user_id in user_ids:
            self.entries.pop(user_id, None)


@dataclass
class InMemoryVoteRepository(VoteRepository):
    """In-memory vote lists and win counters for tests."""

    votes: dict[str, list[VoteRecord]] = field(default_factory=dict)
    wins: dict[int, int] = field(default_factory=dict)

    def push_vote(self, user_id: str, vote: VoteRecord, capacity: int) -> None:
        entries = self.votes.setdefault(user_id, [])
        entries.insert(0, vote)
        del entries[capacity:]

    def list_votes(self, user_id: str, limit: int) -> list[VoteRecord]:
        return self.votes.get(user_id, [])[:limit]

    def increment_wins(self, photo_id: int) -> int:
        self.wins[photo_id] = self.wins.get(photo_id, 0) + 1
        return self.wins[photo_id]

    def list_wins(self) -> dict[int, int]:
        return dict(self.wins)


@dataclass
class InMemoryHistoryRepository(HistoryRepository):
    """In-memory tournament archive for tests."""

    entries: list[HistoryEntry] = field(default_factory=list)

    def push_entry(self, entry: HistoryEntry, capacity: int) -> None:
        self.entries.insert(0, entry)
        del self.entries[capacity:]

    def list_entries(self, limit: int) -> list[HistoryEntry]:
        return self.entries[:limit]


@dataclass
class InMemoryPhotoSource(PhotoSource):
    """Static photo catalog for tests."""

    photos: list[Photo] = field(default_factory=lambda: make_photos(4))

    def list_photos(self) -> list[Photo]:
        return list(self.photos)

    def get_photo(self, photo_id: int) -> Photo | None:
        for photo in self.photos:
            if photo.id == photo_id:
                return photo
        return None


@dataclass
class Services:
    """Service graph built on in-memory repositories."""

    clock: FakeClock
    tournaments: InMemoryTournamentRepository
    votes: InMemoryVoteRepository
    history: InMemoryHistoryRepository
    vote_ledger: VoteLedger
    history_archive: HistoryArchive
    bracket_service: BracketService


def build_services(
    rng: random.Random | None = None,
    clock: FakeClock | None = None,
    votes_per_matchup: int = 3,
) -> Services:
    resolved_clock = clock or FakeClock()
    tournaments = InMemoryTournamentRepository()
    votes = InMemoryVoteRepository()
    history = InMemoryHistoryRepository()
    vote_ledger = VoteLedger(votes, clock=resolved_clock)
    history_archive = HistoryArchive(history, vote_ledger=vote_ledger)
    bracket_service = BracketService(
        repository=tournaments,
        vote_ledger=vote_ledger,
        history_archive=history_archive,
        votes_per_matchup=votes_per_matchup,
        rng=rng or NoShuffleRandom(),
        clock=resolved_clock,
    )
    return Services(
        clock=resolved_clock,
        tournaments=tournaments,
        votes=votes,
        history=history,
        vote_ledger=vote_ledger,
        history_archive=history_archive,
        bracket_service=bracket_service,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def services(clock: FakeClock) -> Services:
    return build_services(clock=clock)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        redis_url="redis://localhost:6379/0",
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        scheduler_enabled=False,
    )


@pytest.fixture
def photo_source() -> InMemoryPhotoSource:
    return InMemoryPhotoSource()


@pytest.fixture
def container(
    settings: Settings,
    services: Services,
    photo_source: InMemoryPhotoSource,
    clock: FakeClock,
) -> AppContainer:
    presence_service = PresenceService(InMemoryPresenceRepository(), clock=clock)
    identity_service = IdentityService(
        repository=InMemorySessionRepository(),
        presence_service=presence_service,
        clock=clock,
    )
    ranking_service = RankingService(
        photo_source=photo_source, vote_ledger=services.vote_ledger
    )
    scheduler = TournamentScheduler(
        bracket_service=services.bracket_service,
        photo_source=photo_source,
        clock=clock,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        photo_source=photo_source,
        identity_service=identity_service,
        presence_service=presence_service,
        vote_ledger=services.vote_ledger,
        history_archive=services.history_archive,
        bracket_service=services.bracket_service,
        ranking_service=ranking_service,
        scheduler=scheduler,
        close_resources=close_resources,
    )
