"""Translate Redis client failures into store errors."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from redis.exceptions import RedisError

from photo_tournament.domain.errors import StoreError

_logger = logging.getLogger(__name__)


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Log a Redis failure once and re-raise it as StoreError."""
    try:
        yield
    except RedisError as exc:
        _logger.exception("Redis call failed: %s", action)
        raise StoreError(f"Failed to {action}") from exc
