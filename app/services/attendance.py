"""Attendance session state machine.

Per (gym, member) the state is NOT_CHECKED_IN, CHECKED_IN (an open session)
or CHECKED_OUT (latest session closed). An open session older than the
staleness threshold is closed lazily, by whichever request touches it next,
as if the member had left exactly at the threshold.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.errors import AlreadyInGym, NotInGym
from app.models.attendance import AttendanceSession, EXIT_AUTO, EXIT_MANUAL, SOURCES
from app.services.session_store import close_session, find_open_session, insert_open_session
from app.utils.timeutils import as_utc, day_bounds, local_date, stale_after, utcnow

logger = logging.getLogger(__name__)

NOT_CHECKED_IN = "not_checked_in"
IN_GYM = "in_gym"
CHECKED_OUT = "checked_out"


@dataclass
class TodayStatus:
    status: str
    message: str
    record: Optional[AttendanceSession] = None


def is_stale(record: AttendanceSession, now: datetime) -> bool:
    return record.is_open and as_utc(now) - record.check_in_time > stale_after()


async def auto_close(db: AsyncSession, record: AttendanceSession) -> bool:
    closed = await close_session(db, record, record.check_in_time + stale_after(), EXIT_AUTO)
    if closed:
        logger.info(
            "Auto-closed stale session %s (gym=%s member=%s)",
            record.id, record.gym_id, record.member_id,
        )
    return closed


async def resolve_open_session(
    db: AsyncSession, gym_id: int, member_id: int, now: datetime | None = None
) -> AttendanceSession | None:
    """The member's open session, after closing it if it has gone stale."""
    now = now or utcnow()
    record = await find_open_session(db, gym_id, member_id)
    if record is None:
        return None
    if is_stale(record, now):
        await auto_close(db, record)
        return None
    return record


async def check_in(
    db: AsyncSession, gym_id: int, member_id: int, source: str, now: datetime | None = None
) -> AttendanceSession:
    if source not in SOURCES:
        raise ValueError(f"Unknown check-in source: {source}")
    now = now or utcnow()

    if await resolve_open_session(db, gym_id, member_id, now) is not None:
        raise AlreadyInGym()

    # A concurrent request may still win between the read above and this insert;
    # the partial unique index rejects the loser with the same AlreadyInGym.
    record = await insert_open_session(db, gym_id, member_id, source, now)
    logger.info("Member %s checked in at gym %s via %s", member_id, gym_id, source)
    return record


async def check_out(
    db: AsyncSession, gym_id: int, member_id: int, now: datetime | None = None
) -> AttendanceSession:
    now = now or utcnow()
    record = await resolve_open_session(db, gym_id, member_id, now)
    if record is None:
        raise NotInGym()
    if not await close_session(db, record, now, EXIT_MANUAL):
        raise NotInGym()
    logger.info("Member %s checked out of gym %s", member_id, gym_id)
    return record


async def get_status_today(
    db: AsyncSession, gym_id: int, member_id: int, now: datetime | None = None
) -> TodayStatus:
    now = now or utcnow()
    open_session = await resolve_open_session(db, gym_id, member_id, now)
    if open_session is not None:
        return TodayStatus(IN_GYM, "You're currently in the gym", open_session)

    start, end = day_bounds(local_date(now))
    result = await db.execute(
        select(AttendanceSession)
        .where(AttendanceSession.gym_id == gym_id)
        .where(AttendanceSession.member_id == member_id)
        .where(AttendanceSession.check_in_time >= start)
        .where(AttendanceSession.check_in_time < end)
        .order_by(AttendanceSession.check_in_time.desc(), AttendanceSession.id.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    last = result.scalar_one_or_none()
    if last is None:
        return TodayStatus(NOT_CHECKED_IN, "You have not checked in today", None)

    if last.exit_type == EXIT_AUTO:
        message = f"Your session was auto-closed after {settings.SESSION_STALE_AFTER_HOURS:g} hours"
    else:
        message = "You've checked out for the day"
    return TodayStatus(CHECKED_OUT, message, last)
