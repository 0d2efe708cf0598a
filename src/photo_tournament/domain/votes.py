"""Domain models for the vote ledger."""

from dataclasses import dataclass
from datetime import datetime

CASUAL_VOTE = "casual"


@dataclass(frozen=True)
class VoteRecord:
    """A single vote in a user's history."""

    timestamp: datetime
    voted_for: int
    voted_for_description: str
    round: int | None = None
    match: int | None = None
    type: str | None = None

    @property
    def is_casual(self) -> bool:
        return self.type == CASUAL_VOTE
