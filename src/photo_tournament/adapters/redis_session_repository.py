"""Redis-backed session records."""

from dataclasses import dataclass

from redis import Redis

from photo_tournament.adapters.redis_errors import store_errors
from photo_tournament.domain.sessions import UserSession
from photo_tournament.serialization import format_timestamp
from photo_tournament.services.identity import SessionRepository

USER_KEY_PREFIX = "photo_user"


@dataclass
class RedisSessionRepository(SessionRepository):
    """Keeps one hash per user with an idle expiry."""

    client: Redis
    prefix: str = USER_KEY_PREFIX

    def save_session(self, session: UserSession, ttl_seconds: int) -> None:
        key = f"{self.prefix}:{session.id}"
        with store_errors("save session"):
            self.client.hset(
                key,
                mapping={
                    "id": session.id,
                    "lastActive": format_timestamp(session.last_active),
                },
            )
            self.client.expire(key, ttl_seconds)
