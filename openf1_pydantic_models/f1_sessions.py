from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class F1Session(BaseModel):
    # https://openf1.org/#sessions
    circuit_key: Optional[int] = None
    circuit_short_name: Optional[str] = None
    country_code: Optional[str] = None
    country_key: Optional[int] = None
    country_name: Optional[str] = None
    date_end: Optional[datetime] = None
    date_start: Optional[datetime] = None
    gmt_offset: Optional[str] = None
    location: Optional[str] = None
    meeting_key: Optional[int] = None
    session_key: int
    session_name: Optional[str] = None
    session_type: Optional[str] = None
    year: int
