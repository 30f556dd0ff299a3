"""
Pydantic model for OpenF1 position (classification snapshot) responses.
"""
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class F1Position(BaseModel):
    """One classification update, as returned by https://api.openf1.org/v1/position"""
    date: datetime
    meeting_key: Optional[int] = None
    session_key: Optional[int] = None
    driver_number: int
    position: int
