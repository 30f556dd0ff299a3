from pydantic import BaseModel
from typing import Optional


class DriverInfo(BaseModel):
    # https://openf1.org/#drivers
    meeting_key: Optional[int] = None
    session_key: int
    driver_number: int
    broadcast_name: Optional[str] = None
    full_name: Optional[str] = None
    name_acronym: Optional[str] = None
    team_name: Optional[str] = None
    team_colour: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    headshot_url: Optional[str] = None
    country_code: Optional[str] = None
