"""Photo rankings and tier classification."""

import random
from dataclasses import dataclass, field

from photo_tournament.domain.errors import InvalidVoteError, NotEnoughPhotosError
from photo_tournament.domain.photos import Photo, PhotoRanking, TieredPhoto
from photo_tournament.domain.votes import VoteRecord
from photo_tournament.services.scheduler import PhotoSource
from photo_tournament.services.votes import VoteLedger

WIN_WEIGHT = 0.7
AI_RATING_WEIGHT = 0.3
TIER_THRESHOLDS = (("S", 9.0), ("A", 7.0), ("B", 5.0), ("C", 3.0))
LOWEST_TIER = "D"
TIERS = tuple(name for name, _ in TIER_THRESHOLDS) + (LOWEST_TIER,)


def combined_score(wins: int, ai_rating: float) -> float:
    return wins * WIN_WEIGHT + ai_rating * AI_RATING_WEIGHT


def classify_tier(score: float) -> str:
    """Map a combined score to its tier band."""
    for name, threshold in TIER_THRESHOLDS:
        if score >= threshold:
            return name
    return LOWEST_TIER


@dataclass
class RankingService:
    """Read models over the photo catalog and global win counters."""

    photo_source: PhotoSource
    vote_ledger: VoteLedger
    rng: random.Random = field(default_factory=random.Random)

    def rankings(self) -> list[PhotoRanking]:
        return self.vote_ledger.rankings()

    def tiers(self) -> dict[str, list[TieredPhoto]]:
        """Group catalog photos by tier, best scores first within a tier."""
        wins = self.vote_ledger.wins_by_photo()
        grouped: dict[str, list[TieredPhoto]] = {tier: [] for tier in TIERS}
        for photo in self.photo_source.list_photos():
            photo_wins = wins.get(photo.id, photo.wins)
            score = combined_score(photo_wins, photo.ai_rating)
            tier = classify_tier(score)
            grouped[tier].append(
                TieredPhoto(photo=photo, wins=photo_wins, score=score, tier=tier)
            )
        for entries in grouped.values():
            entries.sort(key=lambda entry: entry.score, reverse=True)
        return grouped

    def cast_casual_vote(self, user_id: str, photo_id: int) -> VoteRecord:
        """Record an ad hoc vote for a catalog photo."""
        photo = self.photo_source.get_photo(photo_id)
        if photo is None:
            raise InvalidVoteError(f"Unknown photo {photo_id}")
        return self.vote_ledger.record_casual_vote(user_id, photo)

    def random_pair(self) -> tuple[Photo, Photo]:
        """Pick two distinct catalog photos for a casual vote."""
        photos = self.photo_source.list_photos()
        if len(photos) < 2:
            raise NotEnoughPhotosError("A casual vote needs at least 2 photos")
        first, second = self.rng.sample(photos, 2)
        return first, second
