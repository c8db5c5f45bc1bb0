# api/scan/checkin_service.py

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from api.passes.pass_repository import PassRepository
from api.passes.passes_schema import PassDocument
from api.scans.scans_model import ScanStatus
from api.scans.scans_schema import ScanCreate
from config.settings import settings
from utils.cache_utils import DuplicateCache
from utils.exceptions import StoreUnavailableError
from utils.time_utils import isoformat, utcnow

logger = logging.getLogger("CheckInService")

SCAN_LOG_WARNING = "Check-in saved but the scan log entry could not be written"


@dataclass
class CheckInOutcome:
    pass_updated: bool
    member_updated: bool = False
    warning: Optional[str] = None


def mark_member(members: List[Dict[str, Any]], member_id: str, checked_in_at: str) -> Optional[List[Dict[str, Any]]]:
    """Copy of the roster with `member_id` checked in, or None if no such member."""
    if not any(m.get("memberId") == member_id for m in members):
        return None
    return [
        {**m, "checkedIn": True, "checkedInAt": checked_in_at} if m.get("memberId") == member_id else m
        for m in members
    ]


def roster_changes(doc: PassDocument, members: List[Dict[str, Any]], now) -> Dict[str, Any]:
    """
    Fields to write for an updated roster. Once every member is in, the
    pass-level flag follows so the document no longer reads as unused.
    """
    changes: Dict[str, Any] = {"team_snapshot": {**(doc.team_snapshot or {}), "members": members}}
    if all(m.get("checkedIn") for m in members) and not doc.checked_in:
        changes["checked_in"] = True
        changes["checked_in_at"] = now
    return changes


class CheckInService:
    """
    Commits a valid scan: flips the pass (or member) state, appends the
    scan log entry and feeds the duplicate cache. There is no rollback; a
    scan log failure after the state change is reported as a warning.
    """

    def __init__(self, repository: PassRepository, cache: DuplicateCache):
        self.repository = repository
        self.cache = cache

    async def confirm(
        self,
        pass_id: str,
        member_id: Optional[str] = None,
        scanner_id: Optional[str] = None,
    ) -> CheckInOutcome:
        now = utcnow()

        if member_id:
            outcome = await self._confirm_member(pass_id, member_id, now)
        else:
            outcome = await self._confirm_pass(pass_id, now)

        outcome.warning = await self.append_scan_log(
            ScanCreate(
                pass_id=pass_id,
                member_id=member_id,
                scanner_id=scanner_id or settings.DEFAULT_SCANNER_ID,
                status=ScanStatus.valid,
                scanned_at=now,
            )
        )

        logger.info(
            "Confirmed check-in: %s%s",
            pass_id,
            f" (Member: {member_id})" if member_id else "",
        )
        return outcome

    async def _confirm_member(self, pass_id: str, member_id: str, now) -> CheckInOutcome:
        # Missing pass or member is tolerated: the scan log entry is still written
        doc = await self.repository.find_pass(pass_id)
        if doc is None or not doc.members:
            logger.info("Member check-in skipped: pass %s has no roster", pass_id)
            return CheckInOutcome(pass_updated=False)

        members = mark_member(doc.members, member_id, isoformat(now))
        if members is None:
            logger.info("Member check-in skipped: %s not on pass %s", member_id, pass_id)
            return CheckInOutcome(pass_updated=False)

        await self.repository.update_pass(doc.id, roster_changes(doc, members, now))
        return CheckInOutcome(pass_updated=True, member_updated=True)

    async def _confirm_pass(self, pass_id: str, now) -> CheckInOutcome:
        changes = {"checked_in": True, "checked_in_at": now}

        updated = await self.repository.update_pass(pass_id, changes)
        if not updated:
            doc = await self.repository.find_pass_by_field(pass_id)
            if doc is not None:
                updated = await self.repository.update_pass(doc.id, changes)

        if updated:
            self.cache.add(pass_id)
        else:
            logger.warning("Check-in for unknown pass %s; only the scan log is written", pass_id)
        return CheckInOutcome(pass_updated=updated)

    async def append_scan_log(self, scan: ScanCreate) -> Optional[str]:
        """Append to the scan log; returns a warning instead of raising on failure."""
        try:
            await self.repository.append_scan(scan)
        except StoreUnavailableError as exc:
            logger.warning("Scan log append failed for %s: %s", scan.pass_id, exc)
            return SCAN_LOG_WARNING
        return None
