"""Domain models for anonymous user sessions."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UserSession:
    """Represents an anonymous browser identity."""

    id: str
    last_active: datetime
