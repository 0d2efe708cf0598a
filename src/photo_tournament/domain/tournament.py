"""Domain models for tournament brackets."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from photo_tournament.domain.photos import Photo, PhotoRanking


@dataclass
class Matchup:
    """A head-to-head contest within a round.

    A matchup with no second player is a bye and is created already resolved.
    """

    round: int
    match: int
    player1: Photo
    player2: Photo | None
    player1_votes: int = 0
    player2_votes: int = 0
    voted_users: list[str] = field(default_factory=list)
    winner: Photo | None = None
    completed: bool = False

    @property
    def is_bye(self) -> bool:
        return self.player2 is None

    @property
    def total_votes(self) -> int:
        return self.player1_votes + self.player2_votes


@dataclass
class TournamentState:
    """The singleton tournament record."""

    is_active: bool
    started_by: str
    started_at: datetime
    bracket: list[Matchup]
    current_round: int = 1
    current_matchup: int = 0
    round_complete: bool = False
    tournament_complete: bool = False

    def round_matchups(self, round_number: int) -> list[Matchup]:
        """Return matchups of a round in bracket order."""
        return [matchup for matchup in self.bracket if matchup.round == round_number]


@dataclass(frozen=True)
class HistoryEntry:
    """A tournament snapshot stored in the archive."""

    tournament: TournamentState
    archived_at: datetime


@dataclass(frozen=True)
class HistoryStats:
    """Aggregate figures over the archive."""

    total_tournaments: int
    total_votes: int
    top_photos: list[PhotoRanking]
    latest: HistoryEntry | None


@dataclass(frozen=True)
class TournamentSchedule:
    """Timing of the running tournament and the next scheduled start."""

    is_active: bool
    time_remaining: timedelta
    next_start_at: datetime
    ends_at: datetime | None = None
