"""
Configuration for talking to the OpenF1 API and for the one-shot cache population.
"""
import os
from typing import List, Tuple


class OpenF1Config:
    """Remote API settings with environment variable support."""

    BASE_URL: str = os.getenv("OPENF1_BASE_URL", "https://api.openf1.org/v1")
    MAX_ATTEMPTS: int = int(os.getenv("OPENF1_MAX_ATTEMPTS", "3"))
    BACKOFF_SECONDS: float = float(os.getenv("OPENF1_BACKOFF_SECONDS", "1.0"))
    REQUEST_TIMEOUT: float = float(os.getenv("OPENF1_TIMEOUT", "30"))


class PopulationConfig:
    """Which data gets cached at startup and how it is written."""

    SEASON: int = int(os.getenv("F1_SEASON", "2024"))
    SESSION_NAME: str = os.getenv("F1_SESSION_NAME", "Race")
    MAX_CONCURRENT_SESSIONS: int = int(os.getenv("F1_MAX_CONCURRENT_SESSIONS", "5"))
    INSERT_CHUNK_SIZE: int = int(os.getenv("F1_INSERT_CHUNK_SIZE", "1000"))

    # (session_key, driver numbers to keep from that session's driver list)
    DRIVER_ROSTER: List[Tuple[int, List[int]]] = [
        (9574, [1, 2, 3, 4, 10, 11, 14, 16, 18, 20, 22, 23, 24, 27, 31, 44, 55, 63, 77, 81]),
        (9636, [30, 50, 43]),
    ]
