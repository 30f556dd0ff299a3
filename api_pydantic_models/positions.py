from typing import Optional
from pydantic import BaseModel
from datetime import datetime


class PositionDB(BaseModel):
    id: Optional[int] = None
    session_key: int
    driver_number: int
    position: int
    date: datetime
