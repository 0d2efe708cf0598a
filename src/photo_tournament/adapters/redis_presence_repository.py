"""Redis-backed presence map."""

import logging
from dataclasses import dataclass
from datetime import datetime

from redis import Redis

from photo_tournament.adapters.redis_errors import store_errors
from photo_tournament.domain.errors import MalformedRecordError
from photo_tournament.serialization import format_timestamp, parse_timestamp
from photo_tournament.services.presence import PresenceRepository

_logger = logging.getLogger(__name__)

ACTIVE_USERS_KEY = "photo_active_users"


@dataclass
class RedisPresenceRepository(PresenceRepository):
    """Single hash of user id to last active timestamp."""

    client: Redis
    key: str = ACTIVE_USERS_KEY

    def set_last_active(self, user_id: str, timestamp: datetime) -> None:
        with store_errors("save presence"):
            self.client.hset(self.key, user_id, format_timestamp(timestamp))

    def list_last_active(self) -> dict[str, datetime]:
        """Return parsed timestamps, dropping entries that cannot be read."""
        with store_errors("load presence"):
            raw = self.client.hgetall(self.key)
        entries: dict[str, datetime] = {}
        for user_id, value in raw.items():
            try:
                entries[str(user_id)] = parse_timestamp(value)
            except MalformedRecordError:
                _logger.warning("Skipping malformed presence entry for %s", user_id)
        return entries

    def remove(self, user_ids: list[str]) -> None:
        if not user_ids:
            return
        with store_errors("remove presence"):
            self.client.hdel(self.key, *user_ids)
