"""Tournament state machine for single-elimination photo brackets.

The tournament record is read, changed in memory and written back whole on
every call. Two voters racing on the same record can lose one of the updates;
the store offers no compare-and-swap and none is attempted here.
"""

import copy
import logging
import random
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Protocol

from photo_tournament.domain.errors import InvalidVoteError, NotEnoughPhotosError
from photo_tournament.domain.photos import Photo
from photo_tournament.domain.tournament import HistoryEntry, Matchup, TournamentState
from photo_tournament.services.clock import Clock, utcnow
from photo_tournament.services.history import HistoryArchive
from photo_tournament.services.votes import VoteLedger

_logger = logging.getLogger(__name__)

MIN_PHOTOS = 2


class TournamentRepository(Protocol):
    """Persistence interface for the singleton tournament record."""

    def get_tournament(self) -> TournamentState | None:
        """Return the stored tournament, if any."""

    def save_tournament(self, state: TournamentState) -> None:
        """Overwrite the stored tournament."""


@dataclass
class BracketService:
    """Builds brackets, tallies votes and advances rounds."""

    repository: TournamentRepository
    vote_ledger: VoteLedger
    history_archive: HistoryArchive
    votes_per_matchup: int = 3
    duration_minutes: int = 30
    rng: random.Random = field(default_factory=random.Random)
    clock: Clock = utcnow

    def get_state(self) -> TournamentState | None:
        return self.repository.get_tournament()

    def initialize(self, photos: list[Photo], started_by: str) -> TournamentState:
        """Start a new tournament, force-ending any active one first."""
        if len(photos) < MIN_PHOTOS:
            raise NotEnoughPhotosError(
                f"A tournament needs at least {MIN_PHOTOS} photos, got {len(photos)}"
            )
        current = self.repository.get_tournament()
        if current is not None and current.is_active:
            _logger.info("Ending active tournament before starting a new one")
            self.end_tournament()

        seeded = list(photos)
        self.rng.shuffle(seeded)
        state = TournamentState(
            is_active=True,
            started_by=started_by,
            started_at=self.clock(),
            bracket=_pair_round(seeded, round_number=1),
        )
        self.repository.save_tournament(state)
        _logger.info("Tournament started by %s with %s photos", started_by, len(seeded))
        return state

    def apply_vote(
        self, user_id: str, matchup_index: int, choice: int
    ) -> TournamentState | None:
        """Count a user's vote; repeat votes by the same user are ignored."""
        state = self.repository.get_tournament()
        if state is None:
            return None
        if choice not in (0, 1):
            raise InvalidVoteError(f"Choice must be 0 or 1, got {choice}")
        if not 0 <= matchup_index < len(state.bracket):
            raise InvalidVoteError(f"No matchup at index {matchup_index}")

        matchup = state.bracket[matchup_index]
        if user_id in matchup.voted_users:
            return state
        if not state.is_active or state.tournament_complete or matchup.completed:
            _logger.debug("Ignoring vote on closed matchup %s", matchup_index)
            return state

        if choice == 0:
            matchup.player1_votes += 1
        else:
            matchup.player2_votes += 1
        matchup.voted_users.append(user_id)
        self.vote_ledger.record_tournament_vote(user_id, matchup, choice)

        if matchup.total_votes >= self.votes_per_matchup:
            self._resolve(matchup)
            _advance_current_matchup(state, matchup_index)

        self.repository.save_tournament(state)
        return state

    def advance_round(self) -> TournamentState | None:
        """Seed the next round from the current round's winners."""
        state = self.repository.get_tournament()
        if state is None:
            return None
        if state.tournament_complete:
            return state

        current = state.round_matchups(state.current_round)
        if any(not matchup.completed for matchup in current):
            _logger.info("Round %s still has open matchups", state.current_round)
            return state
        winners = [matchup.winner for matchup in current if matchup.winner]

        if len(winners) == 1:
            state.tournament_complete = True
            self.repository.save_tournament(state)
            _logger.info("Tournament complete, champion photo %s", winners[0].id)
            return state

        next_round = state.current_round + 1
        matchups = _pair_round(winners, round_number=next_round)
        state.bracket.extend(matchups)
        state.current_round = next_round
        state.current_matchup = len(state.bracket) - len(matchups)
        state.round_complete = False
        self.repository.save_tournament(state)
        _logger.info("Advanced to round %s (%s matchups)", next_round, len(matchups))
        return state

    def end_tournament(self) -> TournamentState | None:
        """Close the tournament and archive a snapshot of it."""
        state = self.repository.get_tournament()
        if state is None:
            return None
        if not state.is_active:
            return state

        if not state.tournament_complete:
            leader = _most_voted(state.round_matchups(state.current_round))
            if leader is not None and not leader.completed:
                self._resolve(leader)
            _logger.info("Tournament ended early in round %s", state.current_round)
        state.is_active = False
        state.tournament_complete = True

        self.history_archive.append(
            HistoryEntry(tournament=copy.deepcopy(state), archived_at=self.clock())
        )
        self.repository.save_tournament(state)
        return state

    def get_winner(self) -> Photo | None:
        """Return the champion of a completed tournament."""
        state = self.repository.get_tournament()
        if state is None or not state.tournament_complete or not state.bracket:
            return None
        final_round = max(matchup.round for matchup in state.bracket)
        resolved = [
            matchup
            for matchup in state.round_matchups(final_round)
            if matchup.winner is not None
        ]
        leader = _most_voted(resolved)
        return leader.winner if leader else None

    def has_voted_in_current_matchup(self, user_id: str) -> bool:
        state = self.repository.get_tournament()
        if state is None or state.round_complete or state.tournament_complete:
            return False
        if not 0 <= state.current_matchup < len(state.bracket):
            return False
        return user_id in state.bracket[state.current_matchup].voted_users

    def is_expired(self, state: TournamentState) -> bool:
        elapsed = self.clock() - state.started_at
        return elapsed >= timedelta(minutes=self.duration_minutes)

    def check_expiration(self) -> bool:
        """End the active tournament once its time is up."""
        state = self.repository.get_tournament()
        if state is None or not state.is_active or not self.is_expired(state):
            return False
        _logger.info("Tournament started at %s expired", state.started_at.isoformat())
        self.end_tournament()
        return True

    def _resolve(self, matchup: Matchup) -> None:
        if matchup.player1_votes > matchup.player2_votes:
            matchup.winner = matchup.player1
        elif matchup.player2_votes > matchup.player1_votes:
            matchup.winner = matchup.player2
        elif self.rng.random() < 0.5:
            matchup.winner = matchup.player1
        else:
            matchup.winner = matchup.player2
        matchup.completed = True


def _pair_round(photos: list[Photo], round_number: int) -> list[Matchup]:
    """Pair photos in order; an odd photo out gets a bye."""
    matchups: list[Matchup] = []
    for index in range(0, len(photos), 2):
        player1 = photos[index]
        if index + 1 < len(photos):
            matchups.append(
                Matchup(
                    round=round_number,
                    match=len(matchups) + 1,
                    player1=player1,
                    player2=photos[index + 1],
                )
            )
        else:
            matchups.append(
                Matchup(
                    round=round_number,
                    match=len(matchups) + 1,
                    player1=player1,
                    player2=None,
                    winner=player1,
                    completed=True,
                )
            )
    return matchups


def _advance_current_matchup(state: TournamentState, completed_index: int) -> None:
    for index in range(completed_index + 1, len(state.bracket)):
        matchup = state.bracket[index]
        if matchup.round == state.current_round and not matchup.completed:
            state.current_matchup = index
            return
    if all(matchup.completed for matchup in state.round_matchups(state.current_round)):
        state.round_complete = True


def _most_voted(matchups: list[Matchup]) -> Matchup | None:
    """Return the matchup with the most votes, first one on ties."""
    leader: Matchup | None = None
    for matchup in matchups:
        if leader is None or matchup.total_votes > leader.total_votes:
            leader = matchup
    return leader
