from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

from api.scans.scans_model import ScanStatus


class ScanCreate(BaseModel):
    pass_id: str
    scanner_id: str
    status: ScanStatus
    scanned_at: datetime
    member_id: Optional[str] = None
    is_offline_sync: bool = False


class ScanEntry(ScanCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)
