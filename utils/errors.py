"""
Exception types shared by the fetch, population and query layers.
"""
from typing import Optional


class NetworkError(Exception):
    """A single request attempt failed at the transport or HTTP status level."""


class PayloadValidationError(Exception):
    """A single request attempt returned an empty, malformed or empty-collection body."""


class FetchError(Exception):
    """Raised once every retry attempt for a URL has failed."""

    def __init__(self, url: str, attempts: int, cause: Optional[Exception]):
        self.url = url
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"Fetching {url} failed after {attempts} attempts: {cause}")


class NotFoundError(Exception):
    """No cached row matches the requested identifier."""


class PopulationError(Exception):
    """The cache cannot be populated well enough for the service to start."""
