"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from redis import Redis
from supabase import create_client

from photo_tournament.adapters.redis_history_repository import RedisHistoryRepository
from photo_tournament.adapters.redis_presence_repository import (
    RedisPresenceRepository,
)
from photo_tournament.adapters.redis_session_repository import RedisSessionRepository
from photo_tournament.adapters.redis_tournament_repository import (
    RedisTournamentRepository,
)
from photo_tournament.adapters.redis_vote_repository import RedisVoteRepository
from photo_tournament.adapters.supabase_photo_repository import SupabasePhotoRepository
from photo_tournament.config import Settings
from photo_tournament.services.bracket import BracketService
from photo_tournament.services.history import HistoryArchive
from photo_tournament.services.identity import IdentityService
from photo_tournament.services.presence import PresenceService
from photo_tournament.services.rankings import RankingService
from photo_tournament.services.scheduler import PhotoSource, TournamentScheduler
from photo_tournament.services.votes import VoteLedger


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    photo_source: PhotoSource
    identity_service: IdentityService
    presence_service: PresenceService
    vote_ledger: VoteLedger
    history_archive: HistoryArchive
    bracket_service: BracketService
    ranking_service: RankingService
    scheduler: TournamentScheduler
    close_resources: Callable[[], Awaitable[None]]


def create_redis_client(url: str) -> Redis:
    """Return a text-mode client; undecodable bytes surface as malformed records."""
    return Redis.from_url(url, decode_responses=True, encoding_errors="replace")


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    redis_client = create_redis_client(resolved_settings.redis_url)
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    photo_source = SupabasePhotoRepository(
        supabase_client, table=resolved_settings.photos_table
    )
    presence_service = PresenceService(
        RedisPresenceRepository(redis_client),
        window_seconds=resolved_settings.presence_window_seconds,
    )
    identity_service = IdentityService(
        repository=RedisSessionRepository(redis_client),
        presence_service=presence_service,
        session_ttl_hours=resolved_settings.session_ttl_hours,
    )
    vote_ledger = VoteLedger(
        RedisVoteRepository(redis_client),
        capacity=resolved_settings.vote_history_capacity,
    )
    history_archive = HistoryArchive(
        repository=RedisHistoryRepository(redis_client),
        vote_ledger=vote_ledger,
        capacity=resolved_settings.history_capacity,
    )
    bracket_service = BracketService(
        repository=RedisTournamentRepository(redis_client),
        vote_ledger=vote_ledger,
        history_archive=history_archive,
        votes_per_matchup=resolved_settings.votes_per_matchup,
        duration_minutes=resolved_settings.tournament_duration_minutes,
    )
    ranking_service = RankingService(photo_source=photo_source, vote_ledger=vote_ledger)
    scheduler = TournamentScheduler(
        bracket_service=bracket_service,
        photo_source=photo_source,
        interval_minutes=resolved_settings.tournament_interval_minutes,
        tick_seconds=resolved_settings.scheduler_tick_seconds,
    )

    async def close_resources() -> None:
        redis_client.close()

    return AppContainer(
        settings=resolved_settings,
        photo_source=photo_source,
        identity_service=identity_service,
        presence_service=presence_service,
        vote_ledger=vote_ledger,
        history_archive=history_archive,
        bracket_service=bracket_service,
        ranking_service=ranking_service,
        scheduler=scheduler,
        close_resources=close_resources,
    )
