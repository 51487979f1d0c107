"""Persistence of attendance sessions.

The single-open-session rule lives in the ``attendance_unique_open_session``
partial index; this module only translates its violation into ``AlreadyInGym``.
Closing is always a conditional update on the open row, so a session is closed
at most once no matter how many requests race for it.
"""
import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AlreadyInGym
from app.models.attendance import (
    AttendanceSession,
    OPEN_SESSION_INDEX,
    STATUS_IN,
    STATUS_OUT,
)

logger = logging.getLogger(__name__)

# SQLite names the indexed columns instead of the index
_SQLITE_OPEN_SESSION_CONFLICT = "attendance.gym_id, attendance.member_id"


def is_open_session_conflict(exc: IntegrityError) -> bool:
    msg = str(getattr(exc, "orig", exc))
    return OPEN_SESSION_INDEX in msg or _SQLITE_OPEN_SESSION_CONFLICT in msg


async def find_open_session(db: AsyncSession, gym_id: int, member_id: int) -> AttendanceSession | None:
    result = await db.execute(
        select(AttendanceSession)
        .where(AttendanceSession.gym_id == gym_id)
        .where(AttendanceSession.member_id == member_id)
        .where(AttendanceSession.status == STATUS_IN)
        .where(AttendanceSession.check_out_time.is_(None))
        .order_by(AttendanceSession.check_in_time.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def insert_open_session(
    db: AsyncSession, gym_id: int, member_id: int, source: str, now: datetime
) -> AttendanceSession:
    record = AttendanceSession(
        gym_id=gym_id,
        member_id=member_id,
        check_in_time=now,
        check_out_time=None,
        status=STATUS_IN,
        exit_type=None,
        source=source,
        created_at=now,
    )
    try:
        # Savepoint: a rejected insert leaves the rest of the session loaded
        async with db.begin_nested():
            db.add(record)
    except IntegrityError as e:
        await db.commit()
        if is_open_session_conflict(e):
            logger.warning(
                "Concurrent check-in rejected by %s (gym=%s member=%s)",
                OPEN_SESSION_INDEX, gym_id, member_id,
            )
            raise AlreadyInGym() from e
        raise
    await db.commit()
    await db.refresh(record)
    return record


async def close_session(
    db: AsyncSession, record: AttendanceSession, checkout_time: datetime, exit_type: str
) -> bool:
    """Close ``record`` if it is still open. Returns False when another request got there first."""
    result = await db.execute(
        update(AttendanceSession)
        .where(AttendanceSession.id == record.id)
        .where(AttendanceSession.check_out_time.is_(None))
        .values(check_out_time=checkout_time, status=STATUS_OUT, exit_type=exit_type)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(record)
    return result.rowcount == 1
