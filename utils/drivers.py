"""
Driver queries: roster listing, career summary and position history.
All figures are computed from the cached rows on every request.
"""
import logging
from datetime import datetime
from typing import List, Optional

from api_pydantic_models.drivers import (
    DriverDB,
    DriverResponse,
    PerformanceSummary,
    DriverRaceResult,
    GetDriverDetailResponse,
    DriverPositionEntry,
    GetDriverPositionsResponse,
)
from api_pydantic_models.lap_data import LapDataDB
from utils.database import Store
from utils.errors import NotFoundError
from utils.race_session import get_session_fastest_lap

logger = logging.getLogger(__name__)


async def list_drivers(store: Store) -> List[DriverResponse]:
    drivers = await store.fetch("drivers", order_by=["driver_number"])
    return [
        DriverResponse(
            driver_number=d.driver_number,
            first_name=d.first_name,
            last_name=d.last_name,
            team_name=d.team_name,
            country_code=d.country_code,
        )
        for d in drivers
    ]


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


async def resolve_driver(store: Store, driver_id: str, allow_index: bool = True) -> DriverDB:
    """
    Look a driver up by number, falling back to a 1-based index into the driver listing.

    The index fallback depends on the store's unordered listing and exists for
    clients that address drivers by their menu position.

    Raises:
        NotFoundError: neither interpretation matches a driver
    """
    number = _parse_int(driver_id)
    if number is None:
        raise NotFoundError(f"Driver {driver_id!r} not found")

    driver = await store.fetch_one("drivers", {"driver_number": number})
    if driver is not None:
        return driver

    if allow_index:
        drivers = await store.fetch("drivers")
        if 1 <= number <= len(drivers):
            logger.info("Driver %s resolved by listing index", driver_id)
            return drivers[number - 1]

    raise NotFoundError(f"Driver {driver_id!r} not found")


async def get_driver_detail(store: Store, driver_id: str) -> GetDriverDetailResponse:
    """
    Career summary for one driver plus a per-session breakdown.

    Sessions without a position row for the driver are left out. A session the
    driver has no valid lap in counts with a zero speed and no fastest lap.

    Raises:
        NotFoundError: driver_id matches no driver
    """
    driver = await resolve_driver(store, driver_id)
    sessions = await store.fetch("sessions")

    wins = 0
    top_3 = 0
    max_speed = 0.0
    results = []
    for session in sessions:
        final_position = await store.fetch_one(
            "positions",
            {"session_key": session.session_key, "driver_number": driver.driver_number},
            order_by=["-date"],
        )
        if final_position is None:
            continue

        best_lap: Optional[LapDataDB] = await store.fetch_one(
            "laps",
            {"session_key": session.session_key, "driver_number": driver.driver_number, "lap_duration__gt": 0},
            order_by=["lap_duration"],
        )
        session_fastest = await get_session_fastest_lap(store, session.session_key)

        best_duration = best_lap.lap_duration if best_lap else 0
        best_speed = (best_lap.st_speed or 0) if best_lap else 0
        has_fastest_lap = (
            best_lap is not None
            and session_fastest is not None
            and best_lap.driver_number == session_fastest.driver_number
            and best_duration > 0
        )

        if final_position.position == 1:
            wins += 1
        if final_position.position <= 3:
            top_3 += 1
        max_speed = max(max_speed, best_speed)

        results.append((
            session.date_start,
            DriverRaceResult(
                session_key=session.session_key,
                circuit_short_name=session.circuit_short_name,
                race=session.race_name,
                position=final_position.position,
                fastest_lap=has_fastest_lap,
                max_speed=best_speed,
                best_lap_duration=best_duration,
            ),
        ))

    results.sort(key=lambda item: (item[0] is None, item[0] or datetime.min))

    return GetDriverDetailResponse(
        driver_id=driver.driver_number,
        performance_summary=PerformanceSummary(wins=wins, top_3_finishes=top_3, max_speed=max_speed),
        race_results=[result for _, result in results],
    )


async def get_driver_positions(store: Store, driver_id: str) -> GetDriverPositionsResponse:
    """
    Every cached classification update of a driver, oldest first.
    Only driver numbers are accepted here, not listing indexes.

    Raises:
        NotFoundError: driver_id is not a cached driver number
    """
    driver = await resolve_driver(store, driver_id, allow_index=False)
    positions = await store.fetch("positions", {"driver_number": driver.driver_number}, order_by=["date"])
    sessions = {s.session_key: s for s in await store.fetch("sessions")}

    entries = []
    for position in positions:
        session = sessions.get(position.session_key)
        if session is None:
            continue
        entries.append(
            DriverPositionEntry(
                session_key=position.session_key,
                circuit_short_name=session.circuit_short_name,
                race=session.race_name,
                position=position.position,
                date=position.date,
            )
        )

    return GetDriverPositionsResponse(driver_id=driver.driver_number, positions=entries)
