from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    func,
    UniqueConstraint,
)
from config.database import Base


class EventAttendanceRecord(Base):
    __tablename__ = "event_attendance"
    __table_args__ = (
        # One admission per pass, event and calendar day
        UniqueConstraint("pass_id", "event_id", "attendance_date", name="uq_attendance_pass_event_date"),
    )

    id              = Column(Integer, primary_key=True, index=True)
    pass_id         = Column(String(128), nullable=False, index=True)
    member_id       = Column(String(128), nullable=True)
    event_id        = Column(String(128), nullable=False, index=True)
    event_name      = Column(String(255), nullable=True)
    pass_category   = Column(String(64), nullable=True)
    attendance_date = Column(String(10), nullable=False)
    scanned_at      = Column(DateTime(timezone=True), nullable=False)
    is_offline_sync = Column(Boolean, nullable=False, default=False)
    created_at      = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __init__(
        self,
        pass_id,
        event_id,
        attendance_date,
        scanned_at,
        event_name=None,
        member_id=None,
        pass_category=None,
        is_offline_sync=False,
    ):
        self.pass_id         = pass_id
        self.member_id       = member_id
        self.event_id        = event_id
        self.event_name      = event_name
        self.pass_category   = pass_category
        self.attendance_date = attendance_date
        self.scanned_at      = scanned_at
        self.is_offline_sync = is_offline_sync
