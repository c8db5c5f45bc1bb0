# api/attendance/attendance_schema.py

from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

from utils.schema_utils import CamelModel


class AttendanceCreate(BaseModel):
    pass_id: str
    event_id: str
    attendance_date: str
    scanned_at: datetime
    event_name: Optional[str] = None
    member_id: Optional[str] = None
    pass_category: Optional[str] = None
    is_offline_sync: bool = False


class AttendanceOut(CamelModel):
    pass_id: str
    member_id: Optional[str] = None
    event_id: str
    event_name: Optional[str] = None
    pass_category: Optional[str] = None
    attendance_date: str
    scanned_at: datetime
    is_offline_sync: bool

    model_config = ConfigDict(from_attributes=True)
