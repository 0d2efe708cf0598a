"""Anonymous session identity for voters."""

from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from photo_tournament.domain.sessions import UserSession
from photo_tournament.services.clock import Clock, utcnow
from photo_tournament.services.presence import PresenceService


class SessionRepository(Protocol):
    """Persistence interface for per-user session records."""

    def save_session(self, session: UserSession, ttl_seconds: int) -> None:
        """Upsert the session record with an expiry."""


@dataclass
class IdentityService:
    """Issue and refresh durable anonymous identities."""

    repository: SessionRepository
    presence_service: PresenceService
    session_ttl_hours: int = 25
    clock: Clock = utcnow

    def get_session(self, token: str | None) -> tuple[UserSession, bool]:
        """Return the session for a cookie token and whether it was minted."""
        user_id = token.strip() if token else ""
        created = not user_id
        if created:
            user_id = str(uuid4())
        session = UserSession(id=user_id, last_active=self.clock())
        self.repository.save_session(
            session, ttl_seconds=self.session_ttl_hours * 3600
        )
        self.presence_service.touch(session.id, session.last_active)
        return session, created
