import httpx
import pytest

from utils.errors import FetchError, NetworkError, PayloadValidationError
from utils.fetcher import PayloadStatus, classify_payload, fetch_with_retry

URL = "https://api.openf1.org/v1/laps"


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def scripted_client(responses):
    """Client whose n-th request gets the n-th scripted response (or raises it)."""
    calls = []

    def handler(request):
        calls.append(request)
        outcome = responses[min(len(calls), len(responses)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), calls


@pytest.mark.parametrize(
    "body, expected",
    [
        (b"", PayloadStatus.MALFORMED),
        (b"<html>busy</html>", PayloadStatus.MALFORMED),
        (b"42", PayloadStatus.MALFORMED),
        (b"null", PayloadStatus.MALFORMED),
        (b"[]", PayloadStatus.EMPTY_COLLECTION),
        (b"{}", PayloadStatus.EMPTY_COLLECTION),
        (b'[{"lap_number": 1}]', PayloadStatus.VALID),
        (b'{"detail": "x"}', PayloadStatus.VALID),
    ],
)
def test_classify_payload(body, expected):
    status, data = classify_payload(body)
    assert status is expected
    assert (data is not None) == (expected is PayloadStatus.VALID)


@pytest.mark.asyncio
async def test_succeeds_on_third_attempt_after_two_failures():
    client, calls = scripted_client([
        httpx.Response(500),
        httpx.Response(503),
        httpx.Response(200, json=[{"lap_number": 1}]),
    ])
    sleep = SleepRecorder()
    async with client:
        data = await fetch_with_retry(client, URL, max_attempts=3, backoff_seconds=1.0, sleep=sleep)

    assert data == [{"lap_number": 1}]
    assert len(calls) == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_gives_up_after_exactly_three_attempts():
    client, calls = scripted_client([httpx.Response(500)])
    sleep = SleepRecorder()
    async with client:
        with pytest.raises(FetchError) as excinfo:
            await fetch_with_retry(client, URL, max_attempts=3, backoff_seconds=1.0, sleep=sleep)

    assert len(calls) == 3
    assert sleep.delays == [1.0, 2.0]
    assert excinfo.value.attempts == 3
    assert isinstance(excinfo.value.cause, NetworkError)
    assert "500" in str(excinfo.value.cause)


@pytest.mark.asyncio
async def test_empty_collection_is_retried_not_returned():
    client, calls = scripted_client([
        httpx.Response(200, json=[]),
        httpx.Response(200, json=[{"position": 1}]),
    ])
    async with client:
        data = await fetch_with_retry(client, URL, sleep=SleepRecorder())

    assert data == [{"position": 1}]
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_last_cause_is_reported():
    client, calls = scripted_client([
        httpx.ConnectError("connection refused"),
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json={}),
    ])
    async with client:
        with pytest.raises(FetchError) as excinfo:
            await fetch_with_retry(client, URL, sleep=SleepRecorder())

    assert len(calls) == 3
    assert isinstance(excinfo.value.cause, PayloadValidationError)
    assert "empty collection" in str(excinfo.value.cause)


@pytest.mark.asyncio
async def test_transport_error_is_a_network_error():
    client, calls = scripted_client([httpx.ConnectTimeout("timed out")])
    async with client:
        with pytest.raises(FetchError) as excinfo:
            await fetch_with_retry(client, URL, max_attempts=2, sleep=SleepRecorder())

    assert len(calls) == 2
    assert isinstance(excinfo.value.cause, NetworkError)


@pytest.mark.asyncio
async def test_query_params_are_sent():
    client, calls = scripted_client([httpx.Response(200, json=[{"session_key": 9158}])])
    async with client:
        await fetch_with_retry(client, URL, params={"session_key": 9158}, sleep=SleepRecorder())

    assert calls[0].url.params["session_key"] == "9158"
