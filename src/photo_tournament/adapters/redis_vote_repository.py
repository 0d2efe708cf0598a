"""Redis-backed vote history and win counters."""

import logging
from dataclasses import dataclass

from redis import Redis

from photo_tournament.adapters.redis_errors import store_errors
from photo_tournament.domain.errors import MalformedRecordError
from photo_tournament.domain.votes import VoteRecord
from photo_tournament.serialization import (
    decode_json,
    encode_json,
    vote_from_dict,
    vote_to_dict,
)
from photo_tournament.services.votes import VoteRepository

_logger = logging.getLogger(__name__)

USER_VOTES_KEY_PREFIX = "photo_user_votes"
PHOTO_WINS_KEY = "photo_wins"


@dataclass
class RedisVoteRepository(VoteRepository):
    """Per-user vote lists plus a shared win counter hash."""

    client: Redis
    votes_prefix: str = USER_VOTES_KEY_PREFIX
    wins_key: str = PHOTO_WINS_KEY

    def push_vote(self, user_id: str, vote: VoteRecord, capacity: int) -> None:
        key = self._votes_key(user_id)
        with store_errors("save vote"):
            self.client.lpush(key, encode_json(vote_to_dict(vote)))
            self.client.ltrim(key, 0, capacity - 1)

    def list_votes(self, user_id: str, limit: int) -> list[VoteRecord]:
        """Return decodable votes, newest first."""
        with store_errors("load votes"):
            raw_votes = self.client.lrange(self._votes_key(user_id), 0, limit - 1)
        votes: list[VoteRecord] = []
        for raw in raw_votes:
            try:
                votes.append(vote_from_dict(decode_json(raw)))
            except MalformedRecordError:
                _logger.warning("Skipping malformed vote for user %s", user_id)
        return votes

    def increment_wins(self, photo_id: int) -> int:
        with store_errors("save photo wins"):
            return int(self.client.hincrby(self.wins_key, str(photo_id), 1))

    def list_wins(self) -> dict[int, int]:
        with store_errors("load photo wins"):
            raw = self.client.hgetall(self.wins_key)
        wins: dict[int, int] = {}
        for photo_id, count in raw.items():
            try:
                wins[int(photo_id)] = int(count)
            except (TypeError, ValueError):
                _logger.warning("Skipping malformed win counter for %s", photo_id)
        return wins

    def _votes_key(self, user_id: str) -> str:
        return f"{self.votes_prefix}:{user_id}"
