"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.responses import JSONResponse

from photo_tournament.api.models import CasualVoteRequest, VoteRequest
from photo_tournament.app_logging import configure_logging
from photo_tournament.containers import AppContainer
from photo_tournament.domain.errors import (
    InvalidVoteError,
    NotEnoughPhotosError,
    StoreError,
)
from photo_tournament.domain.photos import TieredPhoto
from photo_tournament.domain.sessions import UserSession
from photo_tournament.domain.tournament import HistoryStats, TournamentState
from photo_tournament.serialization import (
    format_timestamp,
    history_entry_to_dict,
    photo_to_dict,
    tournament_to_dict,
    vote_to_dict,
)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def current_session(request: Request, response: Response) -> UserSession:
    """Resolve the voter from the session cookie, issuing one if needed."""
    container = _container(request)
    settings = container.settings
    token = request.cookies.get(settings.session_cookie_name)
    session, created = container.identity_service.get_session(token)
    if created:
        response.set_cookie(
            settings.session_cookie_name,
            session.id,
            max_age=settings.session_cookie_max_age_seconds,
            path="/",
            httponly=True,
            secure=settings.secure_cookies,
        )
    return session


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        stop_event = asyncio.Event()
        scheduler_task = None
        if state_container.settings.scheduler_enabled:
            scheduler_task = asyncio.create_task(
                state_container.scheduler.run(stop_event)
            )
        yield
        stop_event.set()
        if scheduler_task is not None:
            await scheduler_task
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(StoreError)
    async def store_error_handler(_: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store unavailable: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc)},
        )

    @app.exception_handler(InvalidVoteError)
    @app.exception_handler(NotEnoughPhotosError)
    async def bad_request_handler(_: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/tournament")
    async def get_tournament(
        request: Request, session: UserSession = Depends(current_session)
    ) -> dict[str, object]:
        """Return the current tournament with the caller's vote status."""
        bracket_service = _container(request).bracket_service
        winner = bracket_service.get_winner()
        return {
            "tournament": _serialize_state(bracket_service.get_state()),
            "hasVoted": bracket_service.has_voted_in_current_matchup(session.id),
            "winner": photo_to_dict(winner) if winner else None,
        }

    @app.post("/tournament/start")
    async def start_tournament(
        request: Request, session: UserSession = Depends(current_session)
    ) -> dict[str, object]:
        """Start a tournament with every catalog photo."""
        state_container = _container(request)
        photos = state_container.photo_source.list_photos()
        state = state_container.bracket_service.initialize(
            photos, started_by=session.id
        )
        return {"tournament": _serialize_state(state)}

    @app.post("/tournament/votes")
    async def cast_vote(
        vote: VoteRequest,
        request: Request,
        session: UserSession = Depends(current_session),
    ) -> dict[str, object]:
        """Vote in a bracket matchup."""
        state = _container(request).bracket_service.apply_vote(
            session.id, vote.matchup_index, vote.choice
        )
        return {"tournament": _serialize_state(state)}

    @app.post("/tournament/advance", dependencies=[Depends(current_session)])
    async def advance_round(request: Request) -> dict[str, object]:
        """Seed the next round."""
        state = _container(request).bracket_service.advance_round()
        return {"tournament": _serialize_state(state)}

    @app.post("/tournament/end", dependencies=[Depends(current_session)])
    async def end_tournament(request: Request) -> dict[str, object]:
        """Force the tournament to finish and archive it."""
        state = _container(request).bracket_service.end_tournament()
        return {"tournament": _serialize_state(state)}

    @app.get("/tournament/schedule")
    async def tournament_schedule(request: Request) -> dict[str, object]:
        """Return time left in the tournament and the next start time."""
        schedule = _container(request).scheduler.schedule()
        return {
            "isActive": schedule.is_active,
            "timeRemainingSeconds": int(schedule.time_remaining.total_seconds()),
            "nextStartAt": format_timestamp(schedule.next_start_at),
            "endsAt": format_timestamp(schedule.ends_at) if schedule.ends_at else None,
        }

    @app.get("/users/active", dependencies=[Depends(current_session)])
    async def active_users(request: Request) -> dict[str, object]:
        """Return users seen within the presence window."""
        users = _container(request).presence_service.list_active()
        return {
            "count": len(users),
            "users": [
                {"id": user.id, "lastActive": format_timestamp(user.last_active)}
                for user in users
            ],
        }

    @app.get("/votes/history")
    async def vote_history(
        request: Request,
        limit: int = 10,
        session: UserSession = Depends(current_session),
    ) -> dict[str, object]:
        """Return the caller's recent votes."""
        votes = _container(request).vote_ledger.history(session.id, limit)
        return {"votes": [vote_to_dict(vote) for vote in votes]}

    @app.post("/votes/casual")
    async def casual_vote(
        vote: CasualVoteRequest,
        request: Request,
        session: UserSession = Depends(current_session),
    ) -> dict[str, object]:
        """Record a vote outside the bracket."""
        record = _container(request).ranking_service.cast_casual_vote(
            session.id, vote.photo_id
        )
        return {"vote": vote_to_dict(record)}

    @app.get("/photos/pair")
    async def photo_pair(request: Request) -> dict[str, object]:
        """Return two distinct random photos for a casual vote."""
        pair = _container(request).ranking_service.random_pair()
        return {"pair": [photo_to_dict(photo) for photo in pair]}

    @app.get("/rankings")
    async def rankings(request: Request) -> dict[str, object]:
        """Return photos ordered by global wins."""
        rankings = _container(request).ranking_service.rankings()
        return {
            "rankings": [
                {"id": ranking.photo_id, "wins": ranking.wins} for ranking in rankings
            ]
        }

    @app.get("/tiers")
    async def tiers(request: Request) -> dict[str, object]:
        """Return catalog photos grouped into S to D tiers."""
        grouped = _container(request).ranking_service.tiers()
        return {
            "tiers": {
                tier: [_serialize_tiered(entry) for entry in entries]
                for tier, entries in grouped.items()
            }
        }

    @app.get("/history")
    async def history(request: Request, limit: int = 10) -> dict[str, object]:
        """Return archived tournaments, newest first."""
        entries = _container(request).history_archive.list_entries(limit)
        return {"history": [history_entry_to_dict(entry) for entry in entries]}

    @app.get("/history/stats")
    async def history_stats(request: Request) -> dict[str, object]:
        """Return aggregate figures over the archive."""
        return _serialize_stats(_container(request).history_archive.stats())

    return app


def _serialize_state(state: TournamentState | None) -> dict[str, object] | None:
    return tournament_to_dict(state) if state else None


def _serialize_tiered(entry: TieredPhoto) -> dict[str, object]:
    payload = photo_to_dict(entry.photo)
    payload["wins"] = entry.wins
    payload["score"] = round(entry.score, 2)
    payload["tier"] = entry.tier
    return payload


def _serialize_stats(stats: HistoryStats) -> dict[str, object]:
    return {
        "totalTournaments": stats.total_tournaments,
        "totalVotes": stats.total_votes,
        "topPhotos": [
            {"id": ranking.photo_id, "wins": ranking.wins}
            for ranking in stats.top_photos
        ],
        "latest": history_entry_to_dict(stats.latest) if stats.latest else None,
    }
