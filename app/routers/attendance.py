from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from dataclasses import asdict
from datetime import date
from typing import List, Optional
from app.database import get_db
from app.core.auth import get_current_user, get_current_staff, STAFF_ROLES
from app.models.attendance import SOURCE_ADMIN, SOURCE_BUTTON
from app.schemas.attendance import (
    AttendanceRecord, AttendanceActionRequest, AttendanceActionResponse,
    GymAttendanceItem, AttendanceStatsResponse,
)
from app.services.attendance import check_in, check_out
from app.services.attendance_queries import (
    PERIODS, attendance_stats, list_gym_attendance, member_history, today_gym_attendance,
)
from app.services.eligibility import (
    ensure_active, resolve_gym_member, resolve_member_for_user, resolve_present_member,
)


router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post("", response_model=AttendanceActionResponse, status_code=201)
async def mark_attendance(
    action_in: AttendanceActionRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Button check-in/out: members act on themselves, staff on a member of their gym."""
    if current_user.role == "member":
        if action_in.action == "check_out":
            member = await resolve_present_member(db, current_user)
        else:
            member = await resolve_member_for_user(db, current_user)
        source = SOURCE_BUTTON
    elif current_user.role in STAFF_ROLES:
        if current_user.gym_id is None:
            raise HTTPException(400, "User must be associated with a gym")
        if action_in.member_id is None:
            raise HTTPException(400, "member_id is required for admin/trainer")
        member = await resolve_gym_member(db, action_in.member_id, current_user.gym_id)
        source = SOURCE_ADMIN
    else:
        raise HTTPException(403, "Not allowed to mark attendance")

    if action_in.action == "check_in":
        ensure_active(member)
        record = await check_in(db, member.gym_id, member.id, source)
        return AttendanceActionResponse(status="checked_in", message="Checked in", record=record)

    response.status_code = 200
    record = await check_out(db, member.gym_id, member.id)
    return AttendanceActionResponse(status="checked_out", message="Checked out", record=record)


@router.get("", response_model=List[AttendanceRecord])
async def list_attendance(
    member_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    staff = Depends(get_current_staff)
):
    if date_from and date_to and date_from > date_to:
        raise HTTPException(400, "date_from must not be after date_to")
    return await list_gym_attendance(db, staff.gym_id, member_id, date_from, date_to)


@router.get("/today", response_model=List[GymAttendanceItem])
async def list_today_attendance(
    db: AsyncSession = Depends(get_db),
    staff = Depends(get_current_staff)
):
    rows = await today_gym_attendance(db, staff.gym_id)
    return [
        GymAttendanceItem(
            **AttendanceRecord.model_validate(record).model_dump(),
            member_name=member_name
        )
        for record, member_name in rows
    ]


@router.get("/stats", response_model=AttendanceStatsResponse)
async def get_attendance_stats(
    period: str = Query("today"),
    db: AsyncSession = Depends(get_db),
    staff = Depends(get_current_staff)
):
    if period not in PERIODS:
        raise HTTPException(400, f"period must be one of: {', '.join(PERIODS)}")
    stats = await attendance_stats(db, staff.gym_id, period)
    return AttendanceStatsResponse(**asdict(stats))


@router.get("/members/{member_id}", response_model=List[AttendanceRecord])
async def get_member_history(
    member_id: int,
    limit: Optional[int] = Query(None, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    staff = Depends(get_current_staff)
):
    member = await resolve_gym_member(db, member_id, staff.gym_id)
    return await member_history(db, member.gym_id, member.id, limit)
