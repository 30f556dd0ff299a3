"""
One-shot population of the local cache from OpenF1.

Each dataset is fetched only when its table is empty, so running population
against an already-populated store makes no network calls at all.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import List, NamedTuple, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from config.openf1_config import PopulationConfig
from openf1_pydantic_models.f1_drivers import DriverInfo
from openf1_pydantic_models.f1_sessions import F1Session
from openf1_pydantic_models.f1_position import F1Position
from openf1_pydantic_models.f1_laps import F1LapData
from api_pydantic_models.drivers import DriverDB
from api_pydantic_models.race_sesssions import SessionDB
from api_pydantic_models.positions import PositionDB
from api_pydantic_models.lap_data import LapDataDB
from utils.database import Store
from utils.errors import FetchError, PopulationError
from utils.openf1 import OpenF1Client

logger = logging.getLogger(__name__)


class PopulationReport(BaseModel):
    drivers_inserted: int = 0
    sessions_inserted: int = 0
    positions_inserted: int = 0
    laps_inserted: int = 0
    failed_sessions: List[int] = []


class SessionBatch(NamedTuple):
    session_key: int
    positions: List[PositionDB]
    laps: List[LapDataDB]
    failed: bool


def normalize_datetime(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize datetime to naive (timezone-unaware) UTC for PostgreSQL TIMESTAMP storage.
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def convert_driver_to_db_model(driver: DriverInfo) -> DriverDB:
    return DriverDB(
        driver_number=driver.driver_number,
        first_name=driver.first_name,
        last_name=driver.last_name,
        name_acronym=driver.name_acronym,
        team_name=driver.team_name,
        country_code=driver.country_code,
    )


def convert_session_to_db_model(session: F1Session) -> SessionDB:
    return SessionDB(
        session_key=session.session_key,
        session_name=session.session_name,
        session_type=session.session_type,
        location=session.location,
        country_name=session.country_name,
        year=session.year,
        circuit_short_name=session.circuit_short_name,
        date_start=normalize_datetime(session.date_start),
    )


def convert_position_to_db_model(position: F1Position, session_key: int) -> PositionDB:
    # The queried key wins over whatever the response claims
    return PositionDB(
        session_key=session_key,
        driver_number=position.driver_number,
        position=position.position,
        date=normalize_datetime(position.date),
    )


def convert_lap_to_db_model(lap: F1LapData, session_key: int) -> LapDataDB:
    return LapDataDB(
        session_key=session_key,
        driver_number=lap.driver_number,
        lap_number=lap.lap_number,
        lap_duration=lap.lap_duration,
        duration_sector_1=lap.duration_sector_1,
        duration_sector_2=lap.duration_sector_2,
        duration_sector_3=lap.duration_sector_3,
        st_speed=lap.st_speed,
        date_start=normalize_datetime(lap.date_start),
    )


async def insert_in_chunks(store: Store, table: str, rows: Sequence[BaseModel], chunk_size: int) -> int:
    """
    Insert rows in fixed-size chunks, each committed on its own.
    A failing chunk is logged with its row range and skipped; earlier chunks stay committed.

    Returns:
        Number of rows actually inserted
    """
    inserted = 0
    for start in range(0, len(rows), chunk_size):
        end = min(start + chunk_size, len(rows))
        try:
            inserted += await store.insert_many(table, rows[start:end])
        except Exception:
            logger.exception("Failed inserting %s rows %d-%d", table, start, end)
            continue
        logger.info("Inserted %s rows %d-%d", table, start, end)
    logger.info("Inserted %d/%d %s rows in total", inserted, len(rows), table)
    return inserted


async def populate_drivers(
    store: Store,
    client: OpenF1Client,
    roster: Sequence[Tuple[int, Sequence[int]]] = PopulationConfig.DRIVER_ROSTER,
) -> int:
    """
    Cache the fixed driver roster if the drivers table is empty.

    Each (session_key, driver_numbers) pair is fetched separately; only the requested
    numbers are kept. A failed pair is logged and the others still get cached.
    """
    if await store.count("drivers") > 0:
        logger.info("Drivers table already populated, skipping")
        return 0

    logger.info("Populating drivers from OpenF1")
    kept: List[DriverDB] = []
    seen = set()
    for session_key, driver_numbers in roster:
        wanted = set(driver_numbers)
        try:
            drivers = await client.fetch_drivers(session_key)
        except (FetchError, ValidationError) as e:
            logger.error("Could not fetch drivers for session_key=%s: %s", session_key, e)
            continue

        found = set()
        for driver in drivers:
            if driver.driver_number not in wanted or driver.driver_number in found:
                continue
            found.add(driver.driver_number)
            if driver.driver_number in seen:
                continue
            seen.add(driver.driver_number)
            kept.append(convert_driver_to_db_model(driver))
            logger.info("Driver found: %s %s (#%d)", driver.first_name, driver.last_name, driver.driver_number)

        missing = [number for number in driver_numbers if number not in found]
        if missing:
            logger.warning("Drivers missing from session_key=%s: %s", session_key, missing)

    if not kept:
        logger.error("No drivers found to insert")
        return 0

    try:
        inserted = await store.insert_many("drivers", kept)
    except Exception:
        logger.exception("Failed inserting %d drivers", len(kept))
        return 0
    logger.info("Inserted %d drivers", inserted)
    return inserted


async def populate_sessions(
    store: Store,
    client: OpenF1Client,
    session_name: str = PopulationConfig.SESSION_NAME,
    year: int = PopulationConfig.SEASON,
) -> int:
    """
    Cache the season's race sessions if the sessions table is empty.

    Raises:
        PopulationError: sessions could not be fetched, none exist, or they could not be stored
    """
    if await store.count("sessions") > 0:
        logger.info("Sessions table already populated, skipping")
        return 0

    logger.info("Populating '%s' sessions for %s from OpenF1", session_name, year)
    try:
        sessions = await client.fetch_sessions(session_name, year)
    except (FetchError, ValidationError) as e:
        raise PopulationError(f"Could not fetch {session_name} sessions for {year}: {e}") from e

    if not sessions:
        raise PopulationError(f"No {session_name} sessions found for {year}")

    for session in sessions:
        logger.info(
            "Session %s: %s in %s (%s)",
            session.session_key, session.session_name, session.country_name, session.date_start
        )

    try:
        inserted = await store.insert_many("sessions", [convert_session_to_db_model(s) for s in sessions])
    except Exception as e:
        raise PopulationError(f"Could not store {len(sessions)} sessions: {e}") from e
    logger.info("Inserted %d sessions", inserted)
    return inserted


async def _fetch_session_data(
    client: OpenF1Client,
    semaphore: asyncio.Semaphore,
    session: SessionDB,
    want_positions: bool,
    want_laps: bool,
) -> SessionBatch:
    positions: List[PositionDB] = []
    laps: List[LapDataDB] = []
    failed = False

    async with semaphore:
        logger.info("Processing session %s: %s in %s", session.session_key, session.session_name, session.country_name)

        if want_positions:
            try:
                fetched = await client.fetch_positions(session.session_key)
                positions = [convert_position_to_db_model(p, session.session_key) for p in fetched]
            except (FetchError, ValidationError) as e:
                failed = True
                logger.error("Could not fetch positions for session_key=%s: %s", session.session_key, e)

        if want_laps:
            try:
                fetched = await client.fetch_laps(session.session_key)
                laps = [convert_lap_to_db_model(lap, session.session_key) for lap in fetched]
            except (FetchError, ValidationError) as e:
                failed = True
                logger.error("Could not fetch laps for session_key=%s: %s", session.session_key, e)

    return SessionBatch(session.session_key, positions, laps, failed)


async def populate_positions_and_laps(
    store: Store,
    client: OpenF1Client,
    max_concurrency: int = PopulationConfig.MAX_CONCURRENT_SESSIONS,
    chunk_size: int = PopulationConfig.INSERT_CHUNK_SIZE,
) -> Tuple[int, int, List[int]]:
    """
    Fan out over every cached session and cache its positions and laps.

    Only empty tables are fetched. At most max_concurrency sessions are in flight;
    a failed session is logged and left absent without affecting the others.

    Returns:
        (positions inserted, laps inserted, keys of sessions with a failed fetch)
    """
    want_positions = await store.count("positions") == 0
    want_laps = await store.count("laps") == 0
    if not want_positions and not want_laps:
        logger.info("Positions and laps tables already populated, skipping")
        return 0, 0, []

    sessions = await store.fetch("sessions")
    if not sessions:
        logger.error("No cached sessions to fetch positions and laps for")
        return 0, 0, []

    logger.info(
        "Populating %s for %d sessions (max %d concurrent)",
        " and ".join(name for name, wanted in (("positions", want_positions), ("laps", want_laps)) if wanted),
        len(sessions),
        max_concurrency,
    )

    semaphore = asyncio.Semaphore(max_concurrency)
    batches = await asyncio.gather(
        *(_fetch_session_data(client, semaphore, s, want_positions, want_laps) for s in sessions)
    )

    all_positions = [p for batch in batches for p in batch.positions]
    all_laps = [lap for batch in batches for lap in batch.laps]
    failed_sessions = [batch.session_key for batch in batches if batch.failed]
    logger.info(
        "Collected %d positions and %d laps; %d sessions failed",
        len(all_positions), len(all_laps), len(failed_sessions)
    )

    positions_inserted = 0
    laps_inserted = 0
    if want_positions:
        positions_inserted = await insert_in_chunks(store, "positions", all_positions, chunk_size)
    if want_laps:
        laps_inserted = await insert_in_chunks(store, "laps", all_laps, chunk_size)
    return positions_inserted, laps_inserted, failed_sessions


async def populate_all(store: Store, client: OpenF1Client) -> PopulationReport:
    """
    Populate every dataset in dependency order: drivers, sessions, then positions and laps.

    Raises:
        PopulationError: the sessions dataset could not be populated
    """
    report = PopulationReport()
    report.drivers_inserted = await populate_drivers(store, client)
    report.sessions_inserted = await populate_sessions(store, client)
    (
        report.positions_inserted,
        report.laps_inserted,
        report.failed_sessions,
    ) = await populate_positions_and_laps(store, client)
    if report.failed_sessions:
        logger.warning("Cache is missing data for sessions: %s", report.failed_sessions)
    logger.info("Population finished: %s", report)
    return report
