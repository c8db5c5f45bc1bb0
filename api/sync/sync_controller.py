# api/sync/sync_controller.py

import logging

from fastapi import status
from fastapi.responses import JSONResponse

from api.passes.pass_repository import PassRepository
from api.scan.scan_controller import server_error_message
from api.sync.sync_schema import SyncRequest, SyncResponse
from api.sync.sync_service import SyncService
from utils.cache_utils import DuplicateCache
from utils.exceptions import (
    DecryptionError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)

logger = logging.getLogger("SyncController")


class SyncController:
    @staticmethod
    async def sync(
        payload: SyncRequest,
        repository: PassRepository,
        cache: DuplicateCache,
    ) -> JSONResponse:
        if not payload.pass_id:
            return _sync_response(
                status.HTTP_400_BAD_REQUEST,
                SyncResponse(success=False, status="invalid", error="Missing Pass ID"),
            )

        svc = SyncService(repository, cache)
        try:
            outcome = await svc.sync(
                payload.pass_id,
                scanner_id=payload.scanner_id,
                scanned_at_millis=payload.scanned_at,
                member_id=payload.member_id,
                event_id=payload.event_id,
                event_name=payload.event_name,
                pass_category=payload.pass_category,
                attendance_date=payload.attendance_date,
            )
        except DecryptionError:
            return _sync_response(
                status.HTTP_200_OK,
                SyncResponse(success=False, status="invalid", error="Invalid or corrupted QR code"),
            )
        except (NotFoundError, ValidationError) as e:
            return _sync_response(
                status.HTTP_200_OK,
                SyncResponse(success=False, status="invalid", error=e.message),
            )
        except StoreUnavailableError as e:
            return _sync_response(
                status.HTTP_503_SERVICE_UNAVAILABLE,
                SyncResponse(success=False, status="invalid", error=e.message),
            )
        except Exception as e:
            logger.exception("Sync error for %s", payload.pass_id)
            return _sync_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                SyncResponse(success=False, status="invalid", error=server_error_message("Sync failed", e)),
            )

        return _sync_response(
            status.HTTP_200_OK,
            SyncResponse(
                success=True,
                status=outcome.status,
                warning=outcome.warning,
                checked_in_at=outcome.checked_in_at,
                attendance_recorded=outcome.attendance_recorded,
            ),
        )


def _sync_response(status_code: int, body: SyncResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True, mode="json"),
    )
