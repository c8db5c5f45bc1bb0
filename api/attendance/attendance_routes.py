# api/attendance/attendance_routes.py

from typing import List, Optional

from fastapi import APIRouter

from api.attendance.attendance_controller import AttendanceController
from api.attendance.attendance_schema import AttendanceOut
from api.passes.pass_repository import PassRepository
from utils.deps import RepositoryDep

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get(
    "/events/{event_id}",
    response_model=List[AttendanceOut],
    summary="List attendance records for an event, optionally for one day",
)
async def list_event_records(
    event_id: str,
    date: Optional[str] = None,
    repository: PassRepository = RepositoryDep,
) -> List[AttendanceOut]:
    return await AttendanceController.list_event_records(event_id, repository, date)


@router.get(
    "/passes/{pass_id}",
    response_model=List[AttendanceOut],
    summary="List every event a pass was admitted to",
)
async def list_pass_records(
    pass_id: str,
    repository: PassRepository = RepositoryDep,
) -> List[AttendanceOut]:
    return await AttendanceController.list_pass_records(pass_id, repository)
