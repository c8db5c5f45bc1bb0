# api/attendance/attendance_controller.py

from typing import List, Optional

from fastapi import HTTPException

from api.attendance.attendance_schema import AttendanceOut
from api.attendance.attendance_service import AttendanceService
from api.passes.pass_repository import PassRepository
from utils.exceptions import StoreUnavailableError
from utils.time_utils import parse_calendar_day


class AttendanceController:
    @staticmethod
    async def list_event_records(
        event_id: str,
        repository: PassRepository,
        attendance_date: Optional[str] = None,
    ) -> List[AttendanceOut]:
        if attendance_date:
            try:
                attendance_date = parse_calendar_day(attendance_date)
            except ValueError:
                raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD")
        svc = AttendanceService(repository)
        try:
            return await svc.list_event_records(event_id, attendance_date)
        except StoreUnavailableError as e:
            raise HTTPException(status_code=503, detail=e.message)

    @staticmethod
    async def list_pass_records(
        pass_id: str,
        repository: PassRepository,
    ) -> List[AttendanceOut]:
        svc = AttendanceService(repository)
        try:
            return await svc.list_pass_records(pass_id)
        except StoreUnavailableError as e:
            raise HTTPException(status_code=503, detail=e.message)
