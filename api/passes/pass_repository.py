"""
Document store boundary for passes, the scan log and event attendance.

Services only talk to `PassRepository`. `SqlPassRepository` backs it with
SQLAlchemy; each call opens its own short-lived session on a threadpool
worker so independent lookups can be awaited together.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import asc, inspect, text
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from api.attendance.attendance_records_model import EventAttendanceRecord
from api.attendance.attendance_schema import AttendanceCreate, AttendanceOut
from api.passes.passes_model import Pass
from api.passes.passes_schema import PassDocument
from api.scans.scans_model import ScanRecord, ScanStatus
from api.scans.scans_schema import ScanCreate, ScanEntry
from utils.exceptions import StoreUnavailableError

logger = logging.getLogger("PassRepository")

_UPDATABLE_FIELDS = {"checked_in", "checked_in_at", "team_snapshot"}


class PassRepository(ABC):
    """get / query / write interface over the pass document store"""

    @abstractmethod
    async def get_pass(self, doc_id: str) -> Optional[PassDocument]:
        """Fetch a pass by its document key"""

    @abstractmethod
    async def find_pass_by_field(self, pass_id: str) -> Optional[PassDocument]:
        """Query passes on the secondary `passId` field"""

    async def find_pass(self, pass_id: str) -> Optional[PassDocument]:
        """
        Exact key first, then the indexed `passId` field. The fallback is
        slower and only runs when the key lookup misses.
        """
        doc = await self.get_pass(pass_id)
        if doc is None:
            logger.debug("Pass %s not found by key, trying passId field", pass_id)
            doc = await self.find_pass_by_field(pass_id)
        return doc

    @abstractmethod
    async def update_pass(self, doc_id: str, changes: Dict[str, Any]) -> bool:
        """Apply `changes` to the document; False if it does not exist"""

    @abstractmethod
    async def first_valid_scan(self, pass_id: str) -> Optional[ScanEntry]:
        """Earliest `valid` scan log entry for the pass"""

    @abstractmethod
    async def append_scan(self, scan: ScanCreate) -> ScanEntry:
        """Append to the scan log"""

    @abstractmethod
    async def list_scans(self, pass_id: str) -> List[ScanEntry]:
        pass

    @abstractmethod
    async def add_attendance_if_absent(self, record: AttendanceCreate) -> bool:
        """Insert unless (pass_id, event_id, attendance_date) exists; True if inserted"""

    @abstractmethod
    async def list_attendance(
        self,
        event_id: Optional[str] = None,
        pass_id: Optional[str] = None,
        attendance_date: Optional[str] = None,
    ) -> List[AttendanceOut]:
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Round-trip to the store; raises StoreUnavailableError when unreachable"""


class SqlPassRepository(PassRepository):
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def _run(self, fn: Callable[..., Any], *args) -> Any:
        return await run_in_threadpool(self._call, fn, *args)

    def _call(self, fn: Callable[..., Any], *args) -> Any:
        db: Session = self.session_factory()
        try:
            return fn(db, *args)
        except (OperationalError, PoolTimeoutError) as exc:
            db.rollback()
            logger.error("Store unavailable during %s: %s", fn.__name__, exc)
            raise StoreUnavailableError() from exc
        finally:
            db.close()

    # -- passes --------------------------------------------------------------

    async def get_pass(self, doc_id: str) -> Optional[PassDocument]:
        return await self._run(self._get_pass, doc_id)

    @staticmethod
    def _get_pass(db: Session, doc_id: str) -> Optional[PassDocument]:
        row = db.get(Pass, doc_id)
        return PassDocument.model_validate(row) if row else None

    async def find_pass_by_field(self, pass_id: str) -> Optional[PassDocument]:
        return await self._run(self._find_pass_by_field, pass_id)

    @staticmethod
    def _find_pass_by_field(db: Session, pass_id: str) -> Optional[PassDocument]:
        row = db.query(Pass).filter(Pass.pass_id == pass_id).first()
        return PassDocument.model_validate(row) if row else None

    async def update_pass(self, doc_id: str, changes: Dict[str, Any]) -> bool:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update pass fields: {sorted(unknown)}")
        return await self._run(self._update_pass, doc_id, changes)

    @staticmethod
    def _update_pass(db: Session, doc_id: str, changes: Dict[str, Any]) -> bool:
        row = db.get(Pass, doc_id)
        if not row:
            return False
        for key, value in changes.items():
            setattr(row, key, value)
        db.commit()
        return True

    # -- scan log ------------------------------------------------------------

    async def first_valid_scan(self, pass_id: str) -> Optional[ScanEntry]:
        return await self._run(self._first_valid_scan, pass_id)

    @staticmethod
    def _first_valid_scan(db: Session, pass_id: str) -> Optional[ScanEntry]:
        row = (
            db.query(ScanRecord)
            .filter(ScanRecord.pass_id == pass_id, ScanRecord.status == ScanStatus.valid)
            .order_by(asc(ScanRecord.scanned_at))
            .first()
        )
        return ScanEntry.model_validate(row) if row else None

    async def append_scan(self, scan: ScanCreate) -> ScanEntry:
        return await self._run(self._append_scan, scan)

    @staticmethod
    def _append_scan(db: Session, scan: ScanCreate) -> ScanEntry:
        row = ScanRecord(**scan.model_dump())
        db.add(row)
        db.commit()
        db.refresh(row)
        return ScanEntry.model_validate(row)

    async def list_scans(self, pass_id: str) -> List[ScanEntry]:
        return await self._run(self._list_scans, pass_id)

    @staticmethod
    def _list_scans(db: Session, pass_id: str) -> List[ScanEntry]:
        rows = (
            db.query(ScanRecord)
            .filter(ScanRecord.pass_id == pass_id)
            .order_by(asc(ScanRecord.scanned_at))
            .all()
        )
        return [ScanEntry.model_validate(r) for r in rows]

    # -- event attendance ----------------------------------------------------

    async def add_attendance_if_absent(self, record: AttendanceCreate) -> bool:
        return await self._run(self._add_attendance_if_absent, record)

    @staticmethod
    def _add_attendance_if_absent(db: Session, record: AttendanceCreate) -> bool:
        exists = (
            db.query(EventAttendanceRecord.id)
            .filter_by(
                pass_id=record.pass_id,
                event_id=record.event_id,
                attendance_date=record.attendance_date,
            )
            .first()
        )
        if exists:
            return False

        db.add(EventAttendanceRecord(**record.model_dump()))
        try:
            db.commit()
        except IntegrityError:
            # a concurrent request inserted the same key between check and write
            db.rollback()
            logger.info(
                "Attendance race absorbed for pass=%s event=%s date=%s",
                record.pass_id, record.event_id, record.attendance_date,
            )
            return False
        return True

    async def list_attendance(
        self,
        event_id: Optional[str] = None,
        pass_id: Optional[str] = None,
        attendance_date: Optional[str] = None,
    ) -> List[AttendanceOut]:
        return await self._run(self._list_attendance, event_id, pass_id, attendance_date)

    @staticmethod
    def _list_attendance(
        db: Session,
        event_id: Optional[str],
        pass_id: Optional[str],
        attendance_date: Optional[str],
    ) -> List[AttendanceOut]:
        query = db.query(EventAttendanceRecord)
        if event_id:
            query = query.filter_by(event_id=event_id)
        if pass_id:
            query = query.filter_by(pass_id=pass_id)
        if attendance_date:
            query = query.filter_by(attendance_date=attendance_date)
        rows = query.order_by(asc(EventAttendanceRecord.scanned_at)).all()
        return [AttendanceOut.model_validate(r) for r in rows]

    # -- health --------------------------------------------------------------

    async def ping(self) -> bool:
        return await self._run(self._ping)

    @staticmethod
    def _ping(db: Session) -> bool:
        db.execute(text("SELECT 1"))
        return True

    def table_names(self) -> List[str]:
        """Synchronous helper for operator scripts"""
        return inspect(self.session_factory.kw["bind"]).get_table_names()
