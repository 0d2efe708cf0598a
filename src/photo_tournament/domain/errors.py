"""Errors raised by the tournament core and its adapters."""


class StoreError(RuntimeError):
    """The key-value store or photo catalog failed."""


class MalformedRecordError(ValueError):
    """A stored record could not be decoded."""


class InvalidVoteError(ValueError):
    """A vote referenced a matchup or side that does not exist."""


class NotEnoughPhotosError(ValueError):
    """A tournament needs at least two photos."""
