from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    Enum,
    Index,
    func,
)
import enum
from config.database import Base


class ScanStatus(enum.Enum):
    valid     = "valid"
    duplicate = "duplicate"
    invalid   = "invalid"


class ScanRecord(Base):
    """Append-only scan log; rows are never updated."""
    __tablename__ = "scans"
    __table_args__ = (
        Index("ix_scans_pass_status", "pass_id", "status"),
    )

    id              = Column(Integer, primary_key=True, index=True)
    pass_id         = Column(String(128), nullable=False)
    member_id       = Column(String(128), nullable=True)
    scanner_id      = Column(String(128), nullable=False)
    status          = Column(Enum(ScanStatus), nullable=False)
    scanned_at      = Column(DateTime(timezone=True), nullable=False)
    is_offline_sync = Column(Boolean, nullable=False, default=False)
    created_at      = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __init__(self, pass_id, scanner_id, status, scanned_at, member_id=None, is_offline_sync=False):
        self.pass_id         = pass_id
        self.member_id       = member_id
        self.scanner_id      = scanner_id
        self.status          = status
        self.scanned_at      = scanned_at
        self.is_offline_sync = is_offline_sync
