"""Read paths for history views and dashboards.

Every path that could report a member as "in the gym" first runs the same lazy
auto-close as the write paths, so stale sessions are never shown as open.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.attendance import AttendanceSession
from app.models.member import Member
from app.services.attendance import auto_close, resolve_open_session
from app.utils.timeutils import as_utc, day_bounds, local_date, stale_after, utcnow

PERIODS = ("today", "week", "month")


@dataclass
class AttendanceStats:
    period: str
    total_check_ins: int
    unique_members: int
    currently_in_gym: int


@dataclass
class DailyCheckInCounts:
    today: int
    yesterday: int
    diff_from_yesterday: int
    trend: List[dict] = field(default_factory=list)


async def close_stale_sessions(db: AsyncSession, gym_id: int, now: datetime | None = None) -> int:
    """Gym-wide version of the lazy auto-close. Returns how many sessions this call closed."""
    now = now or utcnow()
    cutoff = as_utc(now) - stale_after()
    result = await db.execute(
        select(AttendanceSession)
        .where(AttendanceSession.gym_id == gym_id)
        .where(AttendanceSession.check_out_time.is_(None))
        .where(AttendanceSession.check_in_time < cutoff)
        .order_by(AttendanceSession.check_in_time)
    )
    closed = 0
    for record in result.scalars().all():
        if await auto_close(db, record):
            closed += 1
    return closed


async def active_check_in(
    db: AsyncSession, gym_id: int, member_id: int, now: datetime | None = None
) -> AttendanceSession | None:
    return await resolve_open_session(db, gym_id, member_id, now)


async def member_history(
    db: AsyncSession,
    gym_id: int,
    member_id: int,
    limit: int | None = None,
    now: datetime | None = None,
) -> List[AttendanceSession]:
    await resolve_open_session(db, gym_id, member_id, now)
    result = await db.execute(
        select(AttendanceSession)
        .where(AttendanceSession.gym_id == gym_id)
        .where(AttendanceSession.member_id == member_id)
        .order_by(AttendanceSession.check_in_time.desc(), AttendanceSession.id.desc())
        .limit(limit or settings.HISTORY_DEFAULT_LIMIT)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_gym_attendance(
    db: AsyncSession,
    gym_id: int,
    member_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    now: datetime | None = None,
) -> List[AttendanceSession]:
    await close_stale_sessions(db, gym_id, now)

    query = select(AttendanceSession).where(AttendanceSession.gym_id == gym_id)
    if member_id is not None:
        query = query.where(AttendanceSession.member_id == member_id)
    if date_from is not None:
        query = query.where(AttendanceSession.check_in_time >= day_bounds(date_from)[0])
    if date_to is not None:
        query = query.where(AttendanceSession.check_in_time < day_bounds(date_to)[1])

    result = await db.execute(
        query.order_by(AttendanceSession.check_in_time.desc(), AttendanceSession.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def today_gym_attendance(db: AsyncSession, gym_id: int, now: datetime | None = None):
    """Today's sessions for the gym with the member's name, newest first."""
    now = now or utcnow()
    await close_stale_sessions(db, gym_id, now)

    start, end = day_bounds(local_date(now))
    result = await db.execute(
        select(AttendanceSession, Member.name)
        .outerjoin(Member, Member.id == AttendanceSession.member_id)
        .where(AttendanceSession.gym_id == gym_id)
        .where(AttendanceSession.check_in_time >= start)
        .where(AttendanceSession.check_in_time < end)
        .order_by(AttendanceSession.check_in_time.desc(), AttendanceSession.id.desc())
        .execution_options(populate_existing=True)
    )
    return [(record, name or "Unknown Member") for record, name in result.all()]


def period_start(period: str, now: datetime) -> datetime:
    if period == "today":
        return day_bounds(local_date(now))[0]
    if period == "week":
        return as_utc(now) - timedelta(days=7)
    if period == "month":
        return as_utc(now) - timedelta(days=30)
    raise ValueError(f"Unknown period: {period}")


async def attendance_stats(
    db: AsyncSession, gym_id: int, period: str = "today", now: datetime | None = None
) -> AttendanceStats:
    now = now or utcnow()
    since = period_start(period, now)
    await close_stale_sessions(db, gym_id, now)

    totals = await db.execute(
        select(
            func.count(AttendanceSession.id),
            func.count(func.distinct(AttendanceSession.member_id)),
        )
        .where(AttendanceSession.gym_id == gym_id)
        .where(AttendanceSession.check_in_time >= since)
    )
    total, unique_members = totals.one()

    open_now = await db.execute(
        select(func.count(AttendanceSession.id))
        .where(AttendanceSession.gym_id == gym_id)
        .where(AttendanceSession.check_out_time.is_(None))
    )

    return AttendanceStats(
        period=period,
        total_check_ins=total or 0,
        unique_members=unique_members or 0,
        currently_in_gym=open_now.scalar_one() or 0,
    )


async def count_check_ins(db: AsyncSession, gym_id: int, day: date) -> int:
    start, end = day_bounds(day)
    result = await db.execute(
        select(func.count(AttendanceSession.id))
        .where(AttendanceSession.gym_id == gym_id)
        .where(AttendanceSession.check_in_time >= start)
        .where(AttendanceSession.check_in_time < end)
    )
    return result.scalar_one() or 0


async def daily_check_in_counts(
    db: AsyncSession, gym_id: int, now: datetime | None = None, days: int = 7
) -> DailyCheckInCounts:
    now = now or utcnow()
    today = local_date(now)

    trend = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        trend.append({"date": day, "check_ins": await count_check_ins(db, gym_id, day)})

    today_count = trend[-1]["check_ins"] if trend else await count_check_ins(db, gym_id, today)
    if days >= 2:
        yesterday_count = trend[-2]["check_ins"]
    else:
        yesterday_count = await count_check_ins(db, gym_id, today - timedelta(days=1))

    return DailyCheckInCounts(
        today=today_count,
        yesterday=yesterday_count,
        diff_from_yesterday=today_count - yesterday_count,
        trend=trend,
    )
