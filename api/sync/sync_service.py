# api/sync/sync_service.py

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from api.attendance.attendance_service import AttendanceService
from api.passes.pass_repository import PassRepository
from api.scan.checkin_service import CheckInService, roster_changes
from api.scan.scan_service import ScanService
from api.scans.scans_model import ScanStatus
from api.scans.scans_schema import ScanCreate
from config.settings import settings
from utils.cache_utils import DuplicateCache
from utils.exceptions import NotFoundError
from utils.time_utils import ensure_utc, from_epoch_millis, isoformat, utcnow

logger = logging.getLogger("SyncService")


@dataclass
class SyncOutcome:
    status: str
    checked_in_at: datetime
    attendance_recorded: Optional[bool] = None
    warning: Optional[str] = None


def resolve_check_in_time(
    already_checked_in: bool,
    persisted_at: Optional[datetime],
    client_at: datetime,
) -> datetime:
    """
    The true first check-in is whichever happened earliest: keep the stored
    time only if the pass was already in and that time is strictly earlier.
    """
    persisted_at = ensure_utc(persisted_at)
    if already_checked_in and persisted_at is not None and persisted_at < client_at:
        return persisted_at
    return client_at


def _parse_member_time(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        return None


class SyncService:
    """Replays a scan captured while the scanner was offline."""

    def __init__(self, repository: PassRepository, cache: DuplicateCache):
        self.repository = repository
        self.cache = cache
        self.scans = ScanService(repository, cache)
        self.checkins = CheckInService(repository, cache)
        self.attendance = AttendanceService(repository)

    async def sync(
        self,
        pass_id: str,
        scanner_id: Optional[str] = None,
        scanned_at_millis: Optional[float] = None,
        member_id: Optional[str] = None,
        event_id: Optional[str] = None,
        event_name: Optional[str] = None,
        pass_category: Optional[str] = None,
        attendance_date: Optional[str] = None,
    ) -> SyncOutcome:
        """
        Raises DecryptionError / ValidationError for unusable identifiers and
        NotFoundError when neither lookup path finds the pass.
        """
        resolved = self.scans.resolve_identifier(pass_id)
        pass_id = resolved.pass_id

        doc = await self.repository.find_pass(pass_id)
        if doc is None:
            raise NotFoundError()

        client_at = from_epoch_millis(scanned_at_millis)
        candidate_at = client_at or utcnow()

        if member_id and doc.members:
            member = next((m for m in doc.members if m.get("memberId") == member_id), None)
            if member is None:
                raise NotFoundError(f"Member {member_id} not found on pass")
            already_in = bool(member.get("checkedIn"))
            resolved_at = resolve_check_in_time(already_in, _parse_member_time(member.get("checkedInAt")), candidate_at)
            members = [
                {**m, "checkedIn": True, "checkedInAt": isoformat(resolved_at)} if m is member else m
                for m in doc.members
            ]
            await self.repository.update_pass(doc.id, roster_changes(doc, members, resolved_at))
        else:
            already_in = doc.checked_in
            resolved_at = resolve_check_in_time(already_in, doc.checked_in_at, candidate_at)
            await self.repository.update_pass(doc.id, {"checked_in": True, "checked_in_at": resolved_at})
            self.cache.add(pass_id)

        kept_persisted = already_in and resolved_at != candidate_at
        status = ScanStatus.duplicate if kept_persisted else ScanStatus.valid

        warning = await self.checkins.append_scan_log(
            ScanCreate(
                pass_id=pass_id,
                member_id=member_id,
                scanner_id=scanner_id or settings.DEFAULT_SCANNER_ID,
                status=status,
                scanned_at=candidate_at,
                is_offline_sync=True,
            )
        )

        attendance_recorded = None
        if event_id:
            attendance_recorded = await self.attendance.record_attendance(
                pass_id=pass_id,
                member_id=member_id,
                event_id=event_id,
                event_name=event_name,
                pass_category=pass_category or doc.pass_type,
                attendance_date=attendance_date,
                scanned_at=candidate_at,
                is_offline_sync=True,
            )

        logger.info(
            "Offline sync pass=%s status=%s checked_in_at=%s (client=%s)",
            pass_id, status.value, isoformat(resolved_at), isoformat(client_at),
        )
        return SyncOutcome(
            status=status.value,
            checked_in_at=resolved_at,
            attendance_recorded=attendance_recorded,
            warning=warning,
        )
