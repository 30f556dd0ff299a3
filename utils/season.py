"""
Season leaderboards computed from the cached sessions of one season.
"""
import logging
from collections import Counter
from typing import List

from config.openf1_config import PopulationConfig
from api_pydantic_models.season import LeaderboardEntry, GetSeasonSummaryResponse
from utils.database import Store
from utils.race_session import get_final_classification, get_session_fastest_lap, get_driver

logger = logging.getLogger(__name__)

LEADERBOARD_SIZE = 3


async def _leaderboard(store: Store, counts: Counter) -> List[LeaderboardEntry]:
    entries = []
    for driver_number, count in counts.most_common():
        if len(entries) == LEADERBOARD_SIZE:
            break
        driver = await get_driver(store, driver_number)
        if driver is None:
            logger.warning("Leaderboard driver #%s is not cached", driver_number)
            continue
        entries.append(
            LeaderboardEntry(
                position=len(entries) + 1,
                driver=driver.full_name,
                team=driver.team_name,
                country=driver.country_code,
                count=count,
            )
        )
    return entries


async def get_season_summary(store: Store, season: int = PopulationConfig.SEASON) -> GetSeasonSummaryResponse:
    """
    Top 3 drivers by wins, by session fastest laps and by pole positions.

    Pole positions are counted exactly like wins (final position 1); there is no
    qualifying data in the cache to count real poles from.

    Wins need each driver's latest row per session, so they are tallied here
    rather than grouped in the store. The store's grouped counts only decide
    which sessions have anything to look at.
    """
    sessions = await store.fetch("sessions", {"year": season})
    classified = await store.count_by("positions", "session_key")
    timed = await store.count_by("laps", "session_key", {"lap_duration__gt": 0})

    wins: Counter = Counter()
    fastest_laps: Counter = Counter()
    for session in sessions:
        if session.session_key in classified:
            for position in await get_final_classification(store, session.session_key):
                if position.position == 1:
                    wins[position.driver_number] += 1

        if session.session_key in timed:
            fastest = await get_session_fastest_lap(store, session.session_key)
            fastest_laps[fastest.driver_number] += 1

    # TODO: count real poles once qualifying sessions are cached
    poles = Counter(wins)

    return GetSeasonSummaryResponse(
        season=season,
        top_3_winners=await _leaderboard(store, wins),
        top_3_fastest_laps=await _leaderboard(store, fastest_laps),
        top_3_pole_positions=await _leaderboard(store, poles),
    )
