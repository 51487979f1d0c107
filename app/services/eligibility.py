"""Confirms that a member profile exists at the target gym before any session is opened."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import MemberNotFound, MembershipInactive
from app.models.attendance import AttendanceSession
from app.models.member import Member

MEMBER_ACTIVE = "active"


def ensure_active(member: Member) -> Member:
    if member.status != MEMBER_ACTIVE:
        raise MembershipInactive()
    return member


async def resolve_member(db: AsyncSession, user_id: int, gym_id: int) -> Member:
    result = await db.execute(
        select(Member)
        .where(Member.user_id == user_id)
        .where(Member.gym_id == gym_id)
        .limit(1)
    )
    member = result.scalar_one_or_none()
    if member is None:
        raise MemberNotFound("You are not a member of this gym")
    return member


async def resolve_member_for_user(db: AsyncSession, user, gym_id: int | None = None) -> Member:
    """A member user's own profile: at ``gym_id`` when given, else at their home gym."""
    if gym_id is not None:
        return await resolve_member(db, user.id, gym_id)

    query = select(Member).where(Member.user_id == user.id)
    if user.gym_id is not None:
        query = query.where(Member.gym_id == user.gym_id)
    result = await db.execute(query.order_by(Member.id).limit(1))
    member = result.scalar_one_or_none()
    if member is None:
        raise MemberNotFound("Member profile not found")
    return member


async def resolve_present_member(db: AsyncSession, user, gym_id: int | None = None) -> Member:
    """The profile the user is currently checked in with, wherever that is.

    A user with profiles at several gyms can scan into any of them, so leaving
    and status lookups follow the open session before falling back to the
    home gym profile.
    """
    if gym_id is not None:
        return await resolve_member(db, user.id, gym_id)

    result = await db.execute(
        select(Member)
        .join(AttendanceSession, AttendanceSession.member_id == Member.id)
        .where(Member.user_id == user.id)
        .where(AttendanceSession.gym_id == Member.gym_id)
        .where(AttendanceSession.check_out_time.is_(None))
        .order_by(AttendanceSession.check_in_time.desc())
        .limit(1)
    )
    member = result.scalar_one_or_none()
    if member is not None:
        return member
    return await resolve_member_for_user(db, user)


async def resolve_gym_member(db: AsyncSession, member_id: int, gym_id: int) -> Member:
    """Staff-initiated actions may only target members of the staff member's gym."""
    member = await db.get(Member, member_id)
    if member is None or member.gym_id != gym_id:
        raise MemberNotFound("Member not found or does not belong to your gym.")
    return member
