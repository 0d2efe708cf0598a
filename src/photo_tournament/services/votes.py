"""Vote ledger: per-user history and global win counters."""

import logging
from dataclasses import dataclass
from typing import Protocol

from photo_tournament.domain.errors import InvalidVoteError
from photo_tournament.domain.photos import Photo, PhotoRanking
from photo_tournament.domain.tournament import Matchup
from photo_tournament.domain.votes import CASUAL_VOTE, VoteRecord
from photo_tournament.services.clock import Clock, utcnow

_logger = logging.getLogger(__name__)


class VoteRepository(Protocol):
    """Persistence interface for vote history and win counters."""

    def push_vote(self, user_id: str, vote: VoteRecord, capacity: int) -> None:
        """Prepend a vote and trim the list to capacity."""

    def list_votes(self, user_id: str, limit: int) -> list[VoteRecord]:
        """Return up to limit votes, newest first."""

    def increment_wins(self, photo_id: int) -> int:
        """Increment a photo's win counter and return the new value."""

    def list_wins(self) -> dict[int, int]:
        """Return all photo win counters."""


@dataclass
class VoteLedger:
    """Append-only vote history with a bounded length per user."""

    repository: VoteRepository
    capacity: int = 100
    clock: Clock = utcnow

    def record(self, user_id: str, entry: VoteRecord) -> None:
        """Store a vote; casual votes also count as a win for the photo."""
        self.repository.push_vote(user_id, entry, capacity=self.capacity)
        if entry.is_casual:
            wins = self.repository.increment_wins(entry.voted_for)
            _logger.info("Casual vote for photo %s (wins=%s)", entry.voted_for, wins)

    def record_tournament_vote(
        self, user_id: str, matchup: Matchup, choice: int
    ) -> VoteRecord:
        """Record a bracket vote for one side of a matchup."""
        photo = matchup.player1 if choice == 0 else matchup.player2
        if photo is None:
            raise InvalidVoteError("Cannot vote for an empty bracket slot")
        entry = VoteRecord(
            timestamp=self.clock(),
            round=matchup.round,
            match=matchup.match,
            voted_for=photo.id,
            voted_for_description=photo.description,
        )
        self.record(user_id, entry)
        return entry

    def record_casual_vote(self, user_id: str, photo: Photo) -> VoteRecord:
        """Record a vote cast outside the bracket."""
        entry = VoteRecord(
            timestamp=self.clock(),
            voted_for=photo.id,
            voted_for_description=photo.description,
            type=CASUAL_VOTE,
        )
        self.record(user_id, entry)
        return entry

    def history(self, user_id: str, limit: int = 10) -> list[VoteRecord]:
        """Return the most recent votes, newest first."""
        if limit <= 0:
            return []
        return self.repository.list_votes(user_id, min(limit, self.capacity))

    def rankings(self) -> list[PhotoRanking]:
        """Return photo win counters sorted by wins, highest first."""
        wins = self.repository.list_wins()
        rankings = [
            PhotoRanking(photo_id=photo_id, wins=count)
            for photo_id, count in wins.items()
        ]
        return sorted(rankings, key=lambda ranking: ranking.wins, reverse=True)

    def wins_by_photo(self) -> dict[int, int]:
        return self.repository.list_wins()
