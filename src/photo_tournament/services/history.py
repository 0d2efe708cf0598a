"""Archive of completed tournaments."""

from dataclasses import dataclass
from typing import Protocol

from photo_tournament.domain.tournament import HistoryEntry, HistoryStats
from photo_tournament.services.votes import VoteLedger

TOP_PHOTOS = 5


class HistoryRepository(Protocol):
    """Persistence interface for the bounded tournament archive."""

    def push_entry(self, entry: HistoryEntry, capacity: int) -> None:
        """Prepend an entry and drop the oldest beyond capacity."""

    def list_entries(self, limit: int) -> list[HistoryEntry]:
        """Return up to limit entries, newest first."""


@dataclass
class HistoryArchive:
    """Bounded, newest-first archive of tournament snapshots."""

    repository: HistoryRepository
    vote_ledger: VoteLedger
    capacity: int = 10

    def append(self, entry: HistoryEntry) -> None:
        self.repository.push_entry(entry, capacity=self.capacity)

    def list_entries(self, limit: int = 10) -> list[HistoryEntry]:
        """Return archived tournaments, newest first."""
        if limit <= 0:
            return []
        return self.repository.list_entries(min(limit, self.capacity))

    def stats(self) -> HistoryStats:
        """Summarize the archive and the global win leaders."""
        entries = self.repository.list_entries(self.capacity)
        total_votes = sum(
            matchup.total_votes
            for entry in entries
            for matchup in entry.tournament.bracket
        )
        return HistoryStats(
            total_tournaments=len(entries),
            total_votes=total_votes,
            top_photos=self.vote_ledger.rankings()[:TOP_PHOTOS],
            latest=entries[0] if entries else None,
        )
