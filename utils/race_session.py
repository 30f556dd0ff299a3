"""
Session-level queries over the cached rows.
"""
import logging
from typing import List, Optional

from api_pydantic_models.race_sesssions import (
    SessionDB,
    SessionResponse,
    SessionResultEntry,
    FastestLapInfo,
    TopSpeedInfo,
    GetSessionDetailResponse,
)
from api_pydantic_models.positions import PositionDB
from api_pydantic_models.lap_data import LapDataDB
from api_pydantic_models.drivers import DriverDB
from utils.database import Store
from utils.errors import NotFoundError

logger = logging.getLogger(__name__)

LAST_PLACE_LABEL = "Last"


async def get_final_classification(store: Store, session_key: int) -> List[PositionDB]:
    """
    Latest position row per driver in a session, ordered by position ascending.
    Drivers sharing a position keep the store's order.
    """
    rows = await store.fetch("positions", {"session_key": session_key}, order_by=["-date"])
    final = {}
    for row in rows:
        if row.driver_number not in final:
            final[row.driver_number] = row
    return sorted(final.values(), key=lambda p: p.position)


async def get_session_fastest_lap(store: Store, session_key: int) -> Optional[LapDataDB]:
    """Lap with the smallest positive duration in the session, if any."""
    return await store.fetch_one(
        "laps", {"session_key": session_key, "lap_duration__gt": 0}, order_by=["lap_duration"]
    )


async def get_driver(store: Store, driver_number: int) -> Optional[DriverDB]:
    return await store.fetch_one("drivers", {"driver_number": driver_number})


async def list_sessions(store: Store) -> List[SessionResponse]:
    sessions = await store.fetch("sessions", order_by=["date_start"])
    return [
        SessionResponse(
            session_key=s.session_key,
            country_name=s.country_name,
            date_start=s.date_start,
            year=s.year,
            circuit_short_name=s.circuit_short_name,
        )
        for s in sessions
    ]


async def _result_entry(store: Store, position: PositionDB, label: str) -> Optional[SessionResultEntry]:
    driver = await get_driver(store, position.driver_number)
    if driver is None:
        logger.warning("Driver #%s in session_key=%s is not cached", position.driver_number, position.session_key)
        return None
    return SessionResultEntry(
        position=label,
        driver=driver.full_name,
        team=driver.team_name,
        country=driver.country_code,
    )


async def get_session_detail(store: Store, session_key: int) -> GetSessionDetailResponse:
    """
    Podium plus last place, fastest lap and top speed for one session.

    The last-place entry is only added when that driver is not already on the podium.

    Raises:
        NotFoundError: session_key is not cached
    """
    session: Optional[SessionDB] = await store.fetch_one("sessions", {"session_key": session_key})
    if session is None:
        raise NotFoundError(f"Session {session_key} not found")

    standings = await get_final_classification(store, session_key)

    results: List[SessionResultEntry] = []
    shown = set()
    for position in standings[:3]:
        entry = await _result_entry(store, position, str(position.position))
        if entry is None:
            continue
        results.append(entry)
        shown.add(position.driver_number)

    if standings and standings[-1].driver_number not in shown:
        entry = await _result_entry(store, standings[-1], LAST_PLACE_LABEL)
        if entry is not None:
            results.append(entry)

    fastest = await get_session_fastest_lap(store, session_key)
    fastest_driver = await get_driver(store, fastest.driver_number) if fastest else None
    fastest_lap = FastestLapInfo(
        driver=fastest_driver.full_name if fastest_driver else "",
        total_time=fastest.lap_duration if fastest else 0,
        sector_1=(fastest.duration_sector_1 or 0) if fastest else 0,
        sector_2=(fastest.duration_sector_2 or 0) if fastest else 0,
        sector_3=(fastest.duration_sector_3 or 0) if fastest else 0,
    )

    speed_lap = await store.fetch_one(
        "laps", {"session_key": session_key, "st_speed__gt": 0}, order_by=["-st_speed"]
    )
    speed_driver = await get_driver(store, speed_lap.driver_number) if speed_lap else None
    max_speed = TopSpeedInfo(
        driver=speed_driver.full_name if speed_driver else "",
        speed_kmh=speed_lap.st_speed if speed_lap else 0,
    )

    return GetSessionDetailResponse(
        race_id=session.session_key,
        country_name=session.country_name,
        date_start=session.date_start,
        year=session.year,
        circuit_short_name=session.circuit_short_name,
        results=results,
        fastest_lap=fastest_lap,
        max_speed=max_speed,
    )
