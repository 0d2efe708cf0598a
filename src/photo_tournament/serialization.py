"""Conversion between domain models and stored JSON records.

Stored records keep the camelCase field names used by earlier tournaments so the
archive stays readable across versions.
"""

import json
from datetime import UTC, datetime

from photo_tournament.domain.errors import MalformedRecordError
from photo_tournament.domain.photos import Photo
from photo_tournament.domain.tournament import HistoryEntry, Matchup, TournamentState
from photo_tournament.domain.votes import VoteRecord


def encode_json(payload: dict[str, object]) -> str:
    """Serialize a record for storage."""
    return json.dumps(payload, separators=(",", ":"))


def decode_json(raw: object) -> dict[str, object]:
    """Decode a stored record that may already be structured."""
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedRecordError(f"Record is not UTF-8: {exc}") from exc
    if not isinstance(raw, str):
        raise MalformedRecordError(f"Unsupported record type: {type(raw).__name__}")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedRecordError(f"Invalid JSON record: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedRecordError("Record is not an object")
    return payload


def format_timestamp(value: datetime) -> str:
    return value.astimezone(UTC).isoformat()


def parse_timestamp(raw: object) -> datetime:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is present."""
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str) and raw:
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise MalformedRecordError(f"Invalid timestamp: {raw!r}") from exc
    else:
        raise MalformedRecordError(f"Invalid timestamp: {raw!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def photo_to_dict(photo: Photo) -> dict[str, object]:
    return {
        "id": photo.id,
        "url": photo.url,
        "description": photo.description,
        "aiRating": photo.ai_rating,
        "wins": photo.wins,
        "userVotes": photo.user_votes,
    }


def photo_from_dict(payload: object) -> Photo:
    """Build a photo, requiring id and url."""
    if not isinstance(payload, dict):
        raise MalformedRecordError("Photo is not an object")
    try:
        return Photo(
            id=int(payload["id"]),
            url=str(payload["url"]),
            description=str(payload.get("description") or ""),
            ai_rating=float(payload.get("aiRating") or 0.0),
            wins=int(payload.get("wins") or 0),
            user_votes=int(payload.get("userVotes") or 0),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedRecordError(f"Invalid photo: {exc}") from exc


def _optional_photo(payload: object) -> Photo | None:
    if payload is None:
        return None
    return photo_from_dict(payload)


def matchup_to_dict(matchup: Matchup) -> dict[str, object]:
    return {
        "round": matchup.round,
        "match": matchup.match,
        "player1": photo_to_dict(matchup.player1),
        "player2": photo_to_dict(matchup.player2) if matchup.player2 else None,
        "player1Votes": matchup.player1_votes,
        "player2Votes": matchup.player2_votes,
        "votedUsers": list(matchup.voted_users),
        "winner": photo_to_dict(matchup.winner) if matchup.winner else None,
        "completed": matchup.completed,
    }


def matchup_from_dict(payload: object) -> Matchup:
    if not isinstance(payload, dict):
        raise MalformedRecordError("Matchup is not an object")
    try:
        voted_users = payload.get("votedUsers") or []
        if not isinstance(voted_users, list):
            raise MalformedRecordError("votedUsers is not a list")
        return Matchup(
            round=int(payload["round"]),
            match=int(payload["match"]),
            player1=photo_from_dict(payload["player1"]),
            player2=_optional_photo(payload.get("player2")),
            player1_votes=int(payload.get("player1Votes") or 0),
            player2_votes=int(payload.get("player2Votes") or 0),
            # dict.fromkeys drops duplicates while keeping vote order
            voted_users=list(dict.fromkeys(str(user) for user in voted_users)),
            winner=_optional_photo(payload.get("winner")),
            completed=bool(payload.get("completed", False)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        if isinstance(exc, MalformedRecordError):
            raise
        raise MalformedRecordError(f"Invalid matchup: {exc}") from exc


def tournament_to_dict(state: TournamentState) -> dict[str, object]:
    return {
        "isActive": state.is_active,
        "startedBy": state.started_by,
        "startedAt": format_timestamp(state.started_at),
        "bracket": [matchup_to_dict(matchup) for matchup in state.bracket],
        "currentRound": state.current_round,
        "currentMatchup": state.current_matchup,
        "roundComplete": state.round_complete,
        "tournamentComplete": state.tournament_complete,
    }


def tournament_from_dict(payload: dict[str, object]) -> TournamentState:
    try:
        bracket = payload["bracket"]
        if not isinstance(bracket, list):
            raise MalformedRecordError("bracket is not a list")
        return TournamentState(
            is_active=bool(payload.get("isActive", False)),
            started_by=str(payload.get("startedBy") or ""),
            started_at=parse_timestamp(payload.get("startedAt")),
            bracket=[matchup_from_dict(matchup) for matchup in bracket],
            current_round=int(payload.get("currentRound") or 1),
            current_matchup=int(payload.get("currentMatchup") or 0),
            round_complete=bool(payload.get("roundComplete", False)),
            tournament_complete=bool(payload.get("tournamentComplete", False)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        if isinstance(exc, MalformedRecordError):
            raise
        raise MalformedRecordError(f"Invalid tournament: {exc}") from exc


def history_entry_to_dict(entry: HistoryEntry) -> dict[str, object]:
    payload = tournament_to_dict(entry.tournament)
    payload["archivedAt"] = format_timestamp(entry.archived_at)
    return payload


def history_entry_from_dict(payload: dict[str, object]) -> HistoryEntry:
    return HistoryEntry(
        tournament=tournament_from_dict(payload),
        archived_at=parse_timestamp(payload.get("archivedAt")),
    )


def vote_to_dict(vote: VoteRecord) -> dict[str, object]:
    payload: dict[str, object] = {
        "timestamp": format_timestamp(vote.timestamp),
        "votedFor": vote.voted_for,
        "votedForDescription": vote.voted_for_description,
    }
    if vote.round is not None:
        payload["round"] = vote.round
    if vote.match is not None:
        payload["match"] = vote.match
    if vote.type is not None:
        payload["type"] = vote.type
    return payload


def vote_from_dict(payload: dict[str, object]) -> VoteRecord:
    """Build a vote record, accepting the legacy casual vote field names."""
    voted_for = payload.get("votedFor", payload.get("photoId"))
    description = payload.get("votedForDescription", payload.get("photoDescription"))
    try:
        if voted_for is None:
            raise MalformedRecordError("Vote has no votedFor")
        round_number = payload.get("round")
        match_number = payload.get("match")
        vote_type = payload.get("type")
        return VoteRecord(
            timestamp=parse_timestamp(payload.get("timestamp")),
            voted_for=int(voted_for),
            voted_for_description=str(description or ""),
            round=int(round_number) if round_number is not None else None,
            match=int(match_number) if match_number is not None else None,
            type=str(vote_type) if vote_type is not None else None,
        )
    except (TypeError, ValueError) as exc:
        if isinstance(exc, MalformedRecordError):
            raise
        raise MalformedRecordError(f"Invalid vote: {exc}") from exc
