"""
Pydantic models for cached lap rows.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class LapDataDB(BaseModel):
    """
    Model representing lap data as stored in PostgreSQL database.
    A lap_duration of None or 0 means the lap has no valid time.
    """
    id: Optional[int] = None
    session_key: int
    driver_number: int
    lap_number: int
    lap_duration: Optional[float] = None
    duration_sector_1: Optional[float] = None
    duration_sector_2: Optional[float] = None
    duration_sector_3: Optional[float] = None
    st_speed: Optional[float] = None
    date_start: Optional[datetime] = None
