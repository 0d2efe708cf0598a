"""Redis-backed singleton tournament repository."""

import logging
from dataclasses import dataclass

from redis import Redis

from photo_tournament.adapters.redis_errors import store_errors
from photo_tournament.domain.errors import MalformedRecordError
from photo_tournament.domain.tournament import TournamentState
from photo_tournament.serialization import (
    decode_json,
    encode_json,
    tournament_from_dict,
    tournament_to_dict,
)
from photo_tournament.services.bracket import TournamentRepository

_logger = logging.getLogger(__name__)

TOURNAMENT_KEY = "photo_tournament"


@dataclass
class RedisTournamentRepository(TournamentRepository):
    """Stores the tournament as one JSON document under a fixed key."""

    client: Redis
    key: str = TOURNAMENT_KEY

    def get_tournament(self) -> TournamentState | None:
        """Return the stored tournament; an unreadable record counts as absent."""
        with store_errors("load tournament"):
            raw = self.client.get(self.key)
        if raw is None:
            return None
        try:
            return tournament_from_dict(decode_json(raw))
        except MalformedRecordError:
            _logger.warning("Ignoring malformed tournament record", exc_info=True)
            return None

    def save_tournament(self, state: TournamentState) -> None:
        """Overwrite the tournament record."""
        with store_errors("save tournament"):
            self.client.set(self.key, encode_json(tournament_to_dict(state)))
