"""Redis-backed tournament archive."""

import logging
from dataclasses import dataclass

from redis import Redis

from photo_tournament.adapters.redis_errors import store_errors
from photo_tournament.domain.errors import MalformedRecordError
from photo_tournament.domain.tournament import HistoryEntry
from photo_tournament.serialization import (
    decode_json,
    encode_json,
    history_entry_from_dict,
    history_entry_to_dict,
)
from photo_tournament.services.history import HistoryRepository

_logger = logging.getLogger(__name__)

HISTORY_KEY = "photo_tournament_history"


@dataclass
class RedisHistoryRepository(HistoryRepository):
    """Bounded list of archived tournaments, newest at the head."""

    client: Redis
    key: str = HISTORY_KEY

    def push_entry(self, entry: HistoryEntry, capacity: int) -> None:
        with store_errors("save tournament history"):
            self.client.lpush(self.key, encode_json(history_entry_to_dict(entry)))
            self.client.ltrim(self.key, 0, capacity - 1)

    def list_entries(self, limit: int) -> list[HistoryEntry]:
        with store_errors("load tournament history"):
            raw_entries = self.client.lrange(self.key, 0, limit - 1)
        entries: list[HistoryEntry] = []
        for raw in raw_entries:
            try:
                entries.append(history_entry_from_dict(decode_json(raw)))
            except MalformedRecordError:
                _logger.warning("Skipping malformed tournament history entry")
        return entries
