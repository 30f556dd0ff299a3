from pydantic import BaseModel
from typing import List, Optional


class LeaderboardEntry(BaseModel):
    position: int
    driver: str
    team: Optional[str] = None
    country: Optional[str] = None
    count: int


class GetSeasonSummaryResponse(BaseModel):
    season: int
    top_3_winners: List[LeaderboardEntry]
    top_3_fastest_laps: List[LeaderboardEntry]
    top_3_pole_positions: List[LeaderboardEntry]
