# api/scan/scan_controller.py

import logging

from fastapi import status
from fastapi.responses import JSONResponse

from api.attendance.attendance_service import AttendanceService
from api.passes.pass_repository import PassRepository
from api.scan.checkin_service import CheckInService
from api.scan.scan_schema import ConfirmRequest, ConfirmResponse, InvalidScan, ScanRequest
from api.scan.scan_service import ScanService
from config.settings import settings
from utils.cache_utils import DuplicateCache
from utils.exceptions import StoreUnavailableError

logger = logging.getLogger("ScanController")


def server_error_message(default: str, exc: Exception) -> str:
    """Generic message in production, the exception text elsewhere"""
    if settings.is_production:
        return default
    return f"{default}: {exc}"


class ScanController:
    @staticmethod
    async def scan(
        payload: ScanRequest,
        repository: PassRepository,
        cache: DuplicateCache,
    ) -> JSONResponse:
        if not payload.pass_id:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=InvalidScan(error="Missing Pass ID").model_dump(by_alias=True),
            )

        svc = ScanService(repository, cache)
        try:
            result = await svc.verify(payload.pass_id, payload.pass_type)
        except StoreUnavailableError as e:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content=InvalidScan(error=e.message).model_dump(by_alias=True),
            )
        except Exception as e:
            logger.exception("Scan error for %s", payload.pass_id)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=InvalidScan(error=server_error_message("Server error", e)).model_dump(by_alias=True),
            )

        return JSONResponse(content=result.model_dump(by_alias=True, mode="json"))

    @staticmethod
    async def confirm(
        payload: ConfirmRequest,
        repository: PassRepository,
        cache: DuplicateCache,
    ) -> JSONResponse:
        if not payload.pass_id:
            return _confirm_response(
                status.HTTP_400_BAD_REQUEST,
                ConfirmResponse(success=False, error="Missing Pass ID"),
            )

        try:
            outcome = await CheckInService(repository, cache).confirm(
                payload.pass_id,
                member_id=payload.member_id,
                scanner_id=payload.scanner_id,
            )

            attendance_recorded = None
            if payload.event_id:
                attendance_recorded = await AttendanceService(repository).record_attendance(
                    pass_id=payload.pass_id,
                    member_id=payload.member_id,
                    event_id=payload.event_id,
                    event_name=payload.event_name,
                    pass_category=payload.pass_category,
                    attendance_date=payload.attendance_date,
                )
        except StoreUnavailableError as e:
            return _confirm_response(
                status.HTTP_503_SERVICE_UNAVAILABLE,
                ConfirmResponse(success=False, error=e.message),
            )
        except Exception as e:
            logger.exception("Confirm error for %s", payload.pass_id)
            return _confirm_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                ConfirmResponse(success=False, error=server_error_message("Failed to record check-in", e)),
            )

        return _confirm_response(
            status.HTTP_200_OK,
            ConfirmResponse(
                success=True,
                warning=outcome.warning,
                attendance_recorded=attendance_recorded,
            ),
        )


def _confirm_response(status_code: int, body: ConfirmResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))
