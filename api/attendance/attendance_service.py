# api/attendance/attendance_service.py

import logging
from datetime import datetime
from typing import List, Optional

from api.attendance.attendance_schema import AttendanceCreate, AttendanceOut
from api.passes.pass_repository import PassRepository
from utils.exceptions import ValidationError
from utils.time_utils import calendar_day, parse_calendar_day, utcnow

logger = logging.getLogger("AttendanceService")


class AttendanceService:
    """
    Per-event, per-day admissions, independent of the pass-level check-in flag.

    The (pass, event, day) check and the insert are two store operations, so
    two identical concurrent requests can both pass the check. The SQL store
    backs the key with a unique constraint and the losing insert is reported
    as already recorded.
    """

    def __init__(self, repository: PassRepository):
        self.repository = repository

    async def record_attendance(
        self,
        pass_id: str,
        event_id: str,
        event_name: Optional[str] = None,
        member_id: Optional[str] = None,
        pass_category: Optional[str] = None,
        attendance_date: Optional[str] = None,
        scanned_at: Optional[datetime] = None,
        is_offline_sync: bool = False,
    ) -> bool:
        """Returns True if a new record was written, False if one already existed."""
        scanned_at = scanned_at or utcnow()
        if attendance_date:
            try:
                attendance_date = parse_calendar_day(attendance_date)
            except ValueError as exc:
                raise ValidationError(f"Invalid attendance date: {attendance_date}") from exc
        else:
            attendance_date = calendar_day(scanned_at)

        created = await self.repository.add_attendance_if_absent(
            AttendanceCreate(
                pass_id=pass_id,
                member_id=member_id,
                event_id=event_id,
                event_name=event_name,
                pass_category=pass_category,
                attendance_date=attendance_date,
                scanned_at=scanned_at,
                is_offline_sync=is_offline_sync,
            )
        )
        if created:
            logger.info("Attendance recorded pass=%s event=%s date=%s", pass_id, event_id, attendance_date)
        else:
            logger.info("Attendance already recorded pass=%s event=%s date=%s", pass_id, event_id, attendance_date)
        return created

    async def list_event_records(self, event_id: str, attendance_date: Optional[str] = None) -> List[AttendanceOut]:
        return await self.repository.list_attendance(event_id=event_id, attendance_date=attendance_date)

    async def list_pass_records(self, pass_id: str) -> List[AttendanceOut]:
        return await self.repository.list_attendance(pass_id=pass_id)
