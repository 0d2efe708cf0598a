"""Supabase-backed photo catalog."""

import logging
from dataclasses import dataclass

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from photo_tournament.domain.errors import StoreError
from photo_tournament.domain.photos import Photo
from photo_tournament.services.scheduler import PhotoSource

_logger = logging.getLogger(__name__)

_COLUMNS = "id, url, description, ai_rating"


@dataclass
class SupabasePhotoRepository(PhotoSource):
    """Supabase implementation of the photo catalog."""

    client: Client
    table: str = "photos"

    def list_photos(self) -> list[Photo]:
        """Return every catalog photo, skipping rows that fail validation."""
        try:
            response = (
                self.client.table(self.table)
                .select(_COLUMNS)
                .order("id", desc=False)
                .execute()
            )
        except (APIError, httpx.HTTPError) as exc:
            _logger.exception("Failed to load photo catalog")
            raise StoreError("Failed to load photos") from exc
        photos = []
        for row in response.data or []:
            photo = _parse_row(row)
            if photo is not None:
                photos.append(photo)
        return photos

    def get_photo(self, photo_id: int) -> Photo | None:
        """Return a catalog photo by id, if present."""
        try:
            response = (
                self.client.table(self.table)
                .select(_COLUMNS)
                .eq("id", photo_id)
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError) as exc:
            _logger.exception("Failed to load photo %s", photo_id)
            raise StoreError("Failed to load photo") from exc
        if not response.data:
            return None
        return _parse_row(response.data[0])


def _parse_row(row: dict[str, object]) -> Photo | None:
    try:
        return Photo(
            id=int(row["id"]),
            url=str(row["url"]),
            description=str(row.get("description") or ""),
            ai_rating=float(row.get("ai_rating") or 0.0),
        )
    except (KeyError, TypeError, ValueError):
        _logger.warning("Skipping malformed photo row: %s", row.get("id"))
        return None
