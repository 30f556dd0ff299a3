from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class SessionDB(BaseModel):
    session_key: int
    session_name: Optional[str] = None
    session_type: Optional[str] = None
    location: Optional[str] = None
    country_name: Optional[str] = None
    year: int
    circuit_short_name: Optional[str] = None
    date_start: Optional[datetime] = None

    @property
    def race_name(self) -> str:
        return f"{self.country_name or self.location or 'Unknown'} Grand Prix"


class SessionResponse(BaseModel):
    session_key: int
    country_name: Optional[str] = None
    date_start: Optional[datetime] = None
    year: int
    circuit_short_name: Optional[str] = None


class SessionResultEntry(BaseModel):
    # "1", "2", "3" or "Last"
    position: str
    driver: str
    team: Optional[str] = None
    country: Optional[str] = None


class FastestLapInfo(BaseModel):
    driver: str
    total_time: float
    sector_1: float
    sector_2: float
    sector_3: float


class TopSpeedInfo(BaseModel):
    driver: str
    speed_kmh: float


class GetSessionDetailResponse(BaseModel):
    race_id: int
    country_name: Optional[str] = None
    date_start: Optional[datetime] = None
    year: int
    circuit_short_name: Optional[str] = None
    results: List[SessionResultEntry]
    fastest_lap: FastestLapInfo
    max_speed: TopSpeedInfo
