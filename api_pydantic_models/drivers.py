"""
Pydantic models for driver rows and driver API responses.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class DriverDB(BaseModel):
    driver_number: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name_acronym: Optional[str] = None
    team_name: Optional[str] = None
    country_code: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class DriverResponse(BaseModel):
    driver_number: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    team_name: Optional[str] = None
    country_code: Optional[str] = None


class PerformanceSummary(BaseModel):
    wins: int
    top_3_finishes: int
    max_speed: float


class DriverRaceResult(BaseModel):
    session_key: int
    circuit_short_name: Optional[str] = None
    race: str
    position: int
    fastest_lap: bool
    max_speed: float
    best_lap_duration: float


class GetDriverDetailResponse(BaseModel):
    driver_id: int
    performance_summary: PerformanceSummary
    race_results: List[DriverRaceResult]


class DriverPositionEntry(BaseModel):
    session_key: int
    circuit_short_name: Optional[str] = None
    race: str
    position: int
    date: datetime


class GetDriverPositionsResponse(BaseModel):
    driver_id: int
    positions: List[DriverPositionEntry]
