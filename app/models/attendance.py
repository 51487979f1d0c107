from sqlalchemy import Column, Integer, String, ForeignKey, Index, text
from app.database import Base
from app.models.types import UTCDateTime
from app.utils.timeutils import utcnow

STATUS_IN = "in"
STATUS_OUT = "out"

EXIT_MANUAL = "manual"
EXIT_AUTO = "auto"

SOURCE_QR_SCAN = "qr_scan"
SOURCE_BUTTON = "button"
SOURCE_ADMIN = "admin"
SOURCES = (SOURCE_QR_SCAN, SOURCE_BUTTON, SOURCE_ADMIN)

OPEN_SESSION_INDEX = "attendance_unique_open_session"
_OPEN_SESSION_WHERE = text("status = 'in' AND check_out_time IS NULL")


class AttendanceSession(Base):
    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True, index=True)
    gym_id = Column(Integer, ForeignKey("gyms.id"), nullable=False)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False)
    check_in_time = Column(UTCDateTime, nullable=False, index=True)
    check_out_time = Column(UTCDateTime, nullable=True)  # NULL = still in the gym
    status = Column(String(3), nullable=False, default=STATUS_IN)  # "in" iff check_out_time IS NULL
    exit_type = Column(String(6), nullable=True)  # manual, auto; NULL while open
    source = Column(String(10), nullable=False)  # qr_scan, button, admin
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (
        # At most one open session per (gym, member), enforced by the database itself
        Index(
            OPEN_SESSION_INDEX,
            "gym_id",
            "member_id",
            unique=True,
            postgresql_where=_OPEN_SESSION_WHERE,
            sqlite_where=_OPEN_SESSION_WHERE,
        ),
        Index("ix_attendance_gym_member_check_in", "gym_id", "member_id", "check_in_time"),
    )

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None
