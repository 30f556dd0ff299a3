"""
Row builders and a shared cached-data scenario for the query tests.
"""
from datetime import datetime, timedelta

from api_pydantic_models.drivers import DriverDB
from api_pydantic_models.race_sesssions import SessionDB
from api_pydantic_models.positions import PositionDB
from api_pydantic_models.lap_data import LapDataDB

T0 = datetime(2024, 3, 2, 15, 0, 0)


def driver(number, first, last, team, country):
    return DriverDB(
        driver_number=number,
        first_name=first,
        last_name=last,
        name_acronym=last[:3].upper(),
        team_name=team,
        country_code=country,
    )


def session(key, country, circuit, date_start, year=2024):
    return SessionDB(
        session_key=key,
        session_name="Race",
        session_type="Race",
        location=circuit,
        country_name=country,
        year=year,
        circuit_short_name=circuit,
        date_start=date_start,
    )


def position(session_key, driver_number, pos, minutes):
    return PositionDB(
        session_key=session_key,
        driver_number=driver_number,
        position=pos,
        date=T0 + timedelta(minutes=minutes),
    )


def lap(session_key, driver_number, lap_number, duration, st_speed, sectors=(30.0, 31.0, 32.0)):
    return LapDataDB(
        session_key=session_key,
        driver_number=driver_number,
        lap_number=lap_number,
        lap_duration=duration,
        duration_sector_1=sectors[0],
        duration_sector_2=sectors[1],
        duration_sector_3=sectors[2],
        st_speed=st_speed,
        date_start=T0 + timedelta(minutes=lap_number * 2),
    )


DRIVERS = [
    driver(1, "Max", "Verstappen", "Red Bull Racing", "NED"),
    driver(4, "Lando", "Norris", "McLaren", "GBR"),
    driver(16, "Charles", "Leclerc", "Ferrari", "MON"),
    driver(44, "Lewis", "Hamilton", "Mercedes", "GBR"),
    driver(81, "Oscar", "Piastri", "McLaren", "AUS"),
]

# Deliberately not in date order
SESSIONS = [
    session(200, "Saudi Arabia", "Jeddah", datetime(2024, 3, 9, 17, 0)),
    session(50, "United Arab Emirates", "Yas Marina Circuit", datetime(2023, 11, 26, 13, 0), year=2023),
    session(100, "Bahrain", "Sakhir", datetime(2024, 3, 2, 15, 0)),
]

POSITIONS = [
    # Bahrain: Leclerc leads early, Verstappen finishes first
    position(100, 16, 1, 0),
    position(100, 1, 2, 0),
    position(100, 4, 3, 1),
    position(100, 81, 4, 1),
    position(100, 1, 1, 2),
    position(100, 16, 2, 2),
    # Saudi Arabia: five classified drivers
    position(200, 1, 1, 0),
    position(200, 4, 2, 0),
    position(200, 16, 3, 0),
    position(200, 44, 4, 0),
    position(200, 81, 5, 0),
    # Abu Dhabi 2023
    position(50, 1, 1, 0),
]

LAPS = [
    lap(100, 1, 1, 95.0, 310),
    lap(100, 1, 2, 93.5, 305),
    lap(100, 1, 3, 0, 330),
    lap(100, 16, 1, None, 300),
    lap(100, 16, 2, 93.2, 315, sectors=(29.1, 31.4, 32.7)),
    lap(100, 4, 1, 94.0, 312),
    lap(200, 1, 1, 88.0, 320),
    lap(200, 4, 1, 88.5, 322),
    lap(200, 44, 1, 89.0, 318),
    lap(50, 44, 1, 80.0, 300),
]


def seed_scenario(store):
    store.seed("drivers", DRIVERS)
    store.seed("sessions", SESSIONS)
    store.seed("positions", POSITIONS)
    store.seed("laps", LAPS)
    return store
