"""
Endpoint-level access to the OpenF1 API.
Each method performs one retrying fetch and parses the records into Pydantic models.
"""
import logging
from typing import List

import httpx

from config.openf1_config import OpenF1Config
from constants.openf1_api_endpoints import DRIVERS_API_URL, SESSIONS_API_URL, POSITION_API_URL, LAPS_API_URL
from openf1_pydantic_models.f1_drivers import DriverInfo
from openf1_pydantic_models.f1_sessions import F1Session
from openf1_pydantic_models.f1_position import F1Position
from openf1_pydantic_models.f1_laps import F1LapData
from utils.fetcher import fetch_with_retry

logger = logging.getLogger(__name__)


class OpenF1Client:
    """Read-only OpenF1 client. Holds the shared HTTP client and retry settings, nothing else."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        max_attempts: int = OpenF1Config.MAX_ATTEMPTS,
        backoff_seconds: float = OpenF1Config.BACKOFF_SECONDS,
    ):
        self.http_client = http_client
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds

    async def _get(self, url: str, params: dict) -> list:
        data = await fetch_with_retry(
            self.http_client,
            url,
            params=params,
            max_attempts=self.max_attempts,
            backoff_seconds=self.backoff_seconds,
        )
        # Single-record endpoints may answer with an object instead of an array
        if isinstance(data, dict):
            return [data]
        return data

    async def fetch_drivers(self, session_key: int) -> List[DriverInfo]:
        records = await self._get(DRIVERS_API_URL, {"session_key": session_key})
        drivers = [DriverInfo(**driver) for driver in records]
        logger.info("Fetched %d drivers from OpenF1 for session_key=%s", len(drivers), session_key)
        return drivers

    async def fetch_sessions(self, session_name: str, year: int) -> List[F1Session]:
        records = await self._get(SESSIONS_API_URL, {"session_name": session_name, "year": year})
        sessions = [F1Session(**session) for session in records]
        logger.info("Fetched %d '%s' sessions from OpenF1 for year=%s", len(sessions), session_name, year)
        return sessions

    async def fetch_positions(self, session_key: int) -> List[F1Position]:
        records = await self._get(POSITION_API_URL, {"session_key": session_key})
        positions = [F1Position(**position) for position in records]
        logger.info("Fetched %d position records from OpenF1 for session_key=%s", len(positions), session_key)
        return positions

    async def fetch_laps(self, session_key: int) -> List[F1LapData]:
        records = await self._get(LAPS_API_URL, {"session_key": session_key})
        laps = [F1LapData(**lap) for lap in records]
        logger.info("Fetched %d lap records from OpenF1 for session_key=%s", len(laps), session_key)
        return laps
