"""Domain models for photos and their standings."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Photo:
    """A photo competing in tournaments."""

    id: int
    url: str
    description: str
    ai_rating: float
    wins: int = 0
    user_votes: int = 0


@dataclass(frozen=True)
class PhotoRanking:
    """Global win counter for a photo."""

    photo_id: int
    wins: int


@dataclass(frozen=True)
class TieredPhoto:
    """A photo with its combined score and tier."""

    photo: Photo
    wins: int
    score: float
    tier: str
