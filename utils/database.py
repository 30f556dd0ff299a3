"""
Database utility functions for PostgreSQL operations.
Handles connection management and a small generic row store over the cached tables.
"""
import asyncpg
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple, Type
from contextlib import asynccontextmanager
from pydantic import BaseModel
from config.database_config import DatabaseConfig
from api_pydantic_models.drivers import DriverDB
from api_pydantic_models.race_sesssions import SessionDB
from api_pydantic_models.positions import PositionDB
from api_pydantic_models.lap_data import LapDataDB


class DatabaseManager:
    """Owns one asyncpg connection pool. Created once at startup and passed to the Store."""

    def __init__(self, connection_string: Optional[str] = None):
        self.connection_string = connection_string or DatabaseConfig.get_async_connection_string()
        self._pool: Optional[asyncpg.Pool] = None

    async def get_pool(self) -> asyncpg.Pool:
        """Get or lazily create the connection pool."""
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                self.connection_string,
                min_size=DatabaseConfig.POOL_MIN_SIZE,
                max_size=DatabaseConfig.POOL_MAX_SIZE,
                command_timeout=60
            )
        return self._pool

    async def close_pool(self):
        """Close the database connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def get_connection(self):
        """
        Context manager for database connections.
        Automatically returns connection to pool when done.
        """
        pool = await self.get_pool()
        async with pool.acquire() as connection:
            yield connection


class TableSpec(NamedTuple):
    model: Type[BaseModel]
    columns: Tuple[str, ...]
    insert_columns: Tuple[str, ...]


TABLES: Dict[str, TableSpec] = {
    "drivers": TableSpec(
        DriverDB,
        ("driver_number", "first_name", "last_name", "name_acronym", "team_name", "country_code"),
        ("driver_number", "first_name", "last_name", "name_acronym", "team_name", "country_code"),
    ),
    "sessions": TableSpec(
        SessionDB,
        ("session_key", "session_name", "session_type", "location", "country_name",
         "year", "circuit_short_name", "date_start"),
        ("session_key", "session_name", "session_type", "location", "country_name",
         "year", "circuit_short_name", "date_start"),
    ),
    "positions": TableSpec(
        PositionDB,
        ("id", "session_key", "driver_number", "position", "date"),
        ("session_key", "driver_number", "position", "date"),
    ),
    "laps": TableSpec(
        LapDataDB,
        ("id", "session_key", "driver_number", "lap_number", "lap_duration",
         "duration_sector_1", "duration_sector_2", "duration_sector_3", "st_speed", "date_start"),
        ("session_key", "driver_number", "lap_number", "lap_duration",
         "duration_sector_1", "duration_sector_2", "duration_sector_3", "st_speed", "date_start"),
    ),
}

SCHEMA = """
    CREATE TABLE IF NOT EXISTS drivers (
        driver_number INTEGER PRIMARY KEY,
        first_name TEXT,
        last_name TEXT,
        name_acronym TEXT,
        team_name TEXT,
        country_code TEXT
    );
    CREATE TABLE IF NOT EXISTS sessions (
        session_key INTEGER PRIMARY KEY,
        session_name TEXT,
        session_type TEXT,
        location TEXT,
        country_name TEXT,
        year INTEGER NOT NULL,
        circuit_short_name TEXT,
        date_start TIMESTAMP
    );
    CREATE TABLE IF NOT EXISTS positions (
        id SERIAL PRIMARY KEY,
        session_key INTEGER NOT NULL,
        driver_number INTEGER NOT NULL,
        position INTEGER NOT NULL,
        date TIMESTAMP NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_positions_session_driver ON positions (session_key, driver_number, date);
    CREATE TABLE IF NOT EXISTS laps (
        id SERIAL PRIMARY KEY,
        session_key INTEGER NOT NULL,
        driver_number INTEGER NOT NULL,
        lap_number INTEGER NOT NULL,
        lap_duration DOUBLE PRECISION,
        duration_sector_1 DOUBLE PRECISION,
        duration_sector_2 DOUBLE PRECISION,
        duration_sector_3 DOUBLE PRECISION,
        st_speed DOUBLE PRECISION,
        date_start TIMESTAMP
    );
    CREATE INDEX IF NOT EXISTS idx_laps_session_driver ON laps (session_key, driver_number);
"""


def _table(table: str) -> TableSpec:
    if table not in TABLES:
        raise ValueError(f"Unknown table: {table}")
    return TABLES[table]


def _column(spec: TableSpec, table: str, column: str) -> str:
    if column not in spec.columns:
        raise ValueError(f"Unknown column {column!r} for table {table}")
    return column


def _where(spec: TableSpec, table: str, filters: Optional[Dict[str, Any]]) -> Tuple[str, List[Any]]:
    args: List[Any] = []
    conditions = []
    for key, value in (filters or {}).items():
        if key.endswith("__gt"):
            column, op = _column(spec, table, key[:-4]), ">"
        else:
            column, op = _column(spec, table, key), "="
        args.append(value)
        conditions.append(f"{column} {op} ${len(args)}")
    if not conditions:
        return "", args
    return " WHERE " + " AND ".join(conditions), args


def build_select(
    table: str,
    filters: Optional[Dict[str, Any]] = None,
    order_by: Sequence[str] = (),
    limit: Optional[int] = None,
) -> Tuple[str, List[Any]]:
    """
    Build a parameterised SELECT.

    Filter keys are column names for equality or "<column>__gt" for strictly-greater-than.
    Order keys are column names, prefixed with "-" for descending.
    """
    spec = _table(table)
    where, args = _where(spec, table, filters)
    query = f"SELECT {', '.join(spec.columns)} FROM {table}{where}"
    if order_by:
        ordering = []
        for key in order_by:
            if key.startswith("-"):
                ordering.append(f"{_column(spec, table, key[1:])} DESC")
            else:
                ordering.append(f"{_column(spec, table, key)} ASC")
        query += " ORDER BY " + ", ".join(ordering)
    if limit is not None:
        query += f" LIMIT {int(limit)}"
    return query, args


def build_count_by(
    table: str,
    group_column: str,
    filters: Optional[Dict[str, Any]] = None,
) -> Tuple[str, List[Any]]:
    """
    Build a parameterised grouped count: rows per distinct group_column value, largest count first.
    Filters work as in build_select.
    """
    spec = _table(table)
    column = _column(spec, table, group_column)
    where, args = _where(spec, table, filters)
    query = (
        f"SELECT {column}, COUNT(*) AS count FROM {table}{where}"
        f" GROUP BY {column} ORDER BY count DESC, {column} ASC"
    )
    return query, args


def build_insert(table: str) -> str:
    spec = _table(table)
    placeholders = ", ".join(f"${i}" for i in range(1, len(spec.insert_columns) + 1))
    return f"INSERT INTO {table} ({', '.join(spec.insert_columns)}) VALUES ({placeholders})"


class Store:
    """
    Row store over the cached tables.
    Rows go in and come out as the table's Pydantic DB model.
    """

    def __init__(self, database: DatabaseManager):
        self.database = database

    async def create_tables(self) -> None:
        async with self.database.get_connection() as conn:
            await conn.execute(SCHEMA)

    async def count(self, table: str) -> int:
        _table(table)
        async with self.database.get_connection() as conn:
            return await conn.fetchval(f"SELECT COUNT(*) FROM {table}")

    async def count_by(
        self,
        table: str,
        group_column: str,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Dict[Any, int]:
        """Row counts per group_column value, largest first."""
        query, args = build_count_by(table, group_column, filters)
        async with self.database.get_connection() as conn:
            rows = await conn.fetch(query, *args)
        return {row[group_column]: row["count"] for row in rows}

    async def insert_many(self, table: str, rows: Sequence[BaseModel]) -> int:
        """
        Insert all rows in a single transaction.
        Either every row is committed or none is.
        """
        if not rows:
            return 0
        spec = _table(table)
        query = build_insert(table)
        async with self.database.get_connection() as conn:
            async with conn.transaction():
                await conn.executemany(
                    query,
                    [tuple(getattr(row, column) for column in spec.insert_columns) for row in rows]
                )
        return len(rows)

    async def fetch(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Sequence[str] = (),
        limit: Optional[int] = None,
    ) -> List[BaseModel]:
        spec = _table(table)
        query, args = build_select(table, filters, order_by, limit)
        async with self.database.get_connection() as conn:
            rows = await conn.fetch(query, *args)
        return [spec.model(**dict(row)) for row in rows]

    async def fetch_one(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Sequence[str] = (),
    ) -> Optional[BaseModel]:
        rows = await self.fetch(table, filters, order_by, limit=1)
        return rows[0] if rows else None
