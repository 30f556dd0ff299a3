"""
Retrying JSON fetcher for the OpenF1 API.

Every attempt is decoded and classified exactly once; anything other than a
non-empty JSON array or object counts as a failed attempt and is retried with
exponential backoff.
"""
import asyncio
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Union

import httpx

from utils.errors import FetchError, NetworkError, PayloadValidationError

logger = logging.getLogger(__name__)

Payload = Union[list, dict]


class PayloadStatus(str, Enum):
    VALID = "valid"
    EMPTY_COLLECTION = "empty_collection"
    MALFORMED = "malformed"


def classify_payload(body: bytes) -> Tuple[PayloadStatus, Optional[Payload]]:
    """
    Decode a response body and classify it.

    Returns (VALID, data) for a non-empty JSON array or object, (EMPTY_COLLECTION, None)
    for [] or {}, and (MALFORMED, None) for an empty body, invalid JSON or a JSON scalar.
    """
    if not body:
        return PayloadStatus.MALFORMED, None
    try:
        data = json.loads(body)
    except ValueError:
        return PayloadStatus.MALFORMED, None
    if not isinstance(data, (list, dict)):
        return PayloadStatus.MALFORMED, None
    if not data:
        return PayloadStatus.EMPTY_COLLECTION, None
    return PayloadStatus.VALID, data


async def _attempt(client: httpx.AsyncClient, url: str, params: Optional[Dict[str, Any]]) -> Payload:
    try:
        response = await client.get(url, params=params)
    except httpx.HTTPError as e:
        raise NetworkError(f"request to {url} failed: {e!r}") from e

    if response.status_code != 200:
        raise NetworkError(f"HTTP {response.status_code} from {url}")

    status, data = classify_payload(response.content)
    if status is PayloadStatus.MALFORMED:
        raise PayloadValidationError(f"malformed payload from {url}")
    if status is PayloadStatus.EMPTY_COLLECTION:
        raise PayloadValidationError(f"empty collection from {url}")
    return data


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Payload:
    """
    Fetch a URL and return its decoded, non-empty JSON collection.

    Args:
        client: Shared httpx client (connection pool only, no per-call state)
        url: Endpoint URL
        params: Query parameters
        max_attempts: Total number of attempts, including the first
        backoff_seconds: Delay after the first failure; doubles after each further failure
        sleep: Awaitable used for the backoff delay

    Raises:
        FetchError: every attempt failed; carries the last cause
    """
    delay = backoff_seconds
    last_error: Optional[Exception] = None

    logger.info("Fetching %s params=%s", url, params)
    for attempt in range(1, max_attempts + 1):
        if attempt > 1:
            logger.info("Retry %d/%d for %s", attempt, max_attempts, url)
        try:
            data = await _attempt(client, url, params)
        except (NetworkError, PayloadValidationError) as e:
            last_error = e
            logger.warning("Attempt %d/%d for %s failed: %s", attempt, max_attempts, url, e)
            if attempt < max_attempts:
                await sleep(delay)
                delay *= 2
            continue
        logger.info("Valid response from %s (%d records)", url, len(data))
        return data

    raise FetchError(url, max_attempts, last_error)
