# api/scan/scan_schema.py

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import ConfigDict, Field, validator

from utils.schema_utils import CamelModel
from utils.time_utils import parse_calendar_day


class ScanRequest(CamelModel):
    pass_id: Optional[str] = None
    pass_type: Optional[str] = None
    scanner_id: Optional[str] = None
    user_id: Optional[str] = None
    token: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class StudentInfo(CamelModel):
    name: str
    pass_type: str
    amount_paid: float = 0
    members: Optional[List[Dict[str, Any]]] = None
    checked_in: bool = False
    checked_in_at: Optional[datetime] = None


class ValidStudent(StudentInfo):
    # identifier the client should send back to /api/scan/confirm
    id: str = Field(alias="_id")


class DuplicateStudent(StudentInfo):
    first_check_in_time: datetime


class ValidScan(CamelModel):
    status: Literal["valid"] = "valid"
    student: ValidStudent


class DuplicateScan(CamelModel):
    status: Literal["duplicate"] = "duplicate"
    student: DuplicateStudent


class InvalidScan(CamelModel):
    status: Literal["invalid"] = "invalid"
    error: str


ScanResult = Union[ValidScan, DuplicateScan, InvalidScan]


class AttendanceFields(CamelModel):
    """Optional per-event attendance details carried by confirm and sync"""

    event_id: Optional[str] = None
    event_name: Optional[str] = None
    pass_category: Optional[str] = None
    attendance_date: Optional[str] = None

    @validator("attendance_date")
    def validate_attendance_date(cls, v):
        if v is None:
            return v
        try:
            return parse_calendar_day(v)
        except ValueError:
            raise ValueError("attendanceDate must be YYYY-MM-DD")


class ConfirmRequest(AttendanceFields):
    pass_id: Optional[str] = None
    member_id: Optional[str] = None
    scanner_id: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class ConfirmResponse(CamelModel):
    success: bool
    error: Optional[str] = None
    warning: Optional[str] = None
    attendance_recorded: Optional[bool] = None
