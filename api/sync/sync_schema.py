# api/sync/sync_schema.py

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from api.scan.scan_schema import AttendanceFields
from utils.schema_utils import CamelModel
from utils.time_utils import MAX_EPOCH_MILLIS


class SyncRequest(AttendanceFields):
    pass_id: Optional[str] = None
    scanner_id: Optional[str] = None
    member_id: Optional[str] = None
    # epoch milliseconds as recorded by the offline scanner
    scanned_at: Optional[float] = Field(
        default=None, ge=0, le=MAX_EPOCH_MILLIS, allow_inf_nan=False
    )

    model_config = ConfigDict(extra="allow")


class SyncResponse(CamelModel):
    success: bool
    status: str
    error: Optional[str] = None
    warning: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    attendance_recorded: Optional[bool] = None
