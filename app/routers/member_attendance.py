from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from app.database import get_db
from app.core.auth import get_current_member_user
from app.schemas.attendance import (
    AttendanceRecord, QrScanRequest, AttendanceActionResponse, AttendanceStatusResponse,
)
from app.services.attendance import check_out, get_status_today
from app.services.attendance_queries import member_history, active_check_in
from app.services.eligibility import resolve_member_for_user, resolve_present_member
from app.services.qr_scan import scan_check_in

router = APIRouter(prefix="/member/attendance", tags=["member attendance"])


@router.post("/scan", response_model=AttendanceActionResponse)
async def scan_qr(
    scan_in: QrScanRequest,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_member_user)
):
    # Check-in only; leaving the gym is always the checkout button
    record = await scan_check_in(db, current_user.id, scan_in.qr_data)
    return AttendanceActionResponse(
        status="checked_in",
        message="You're checked in! Have a great workout!",
        record=record
    )


@router.post("/checkout", response_model=AttendanceActionResponse)
async def checkout(
    gym_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_member_user)
):
    member = await resolve_present_member(db, current_user, gym_id)
    record = await check_out(db, member.gym_id, member.id)
    return AttendanceActionResponse(
        status="checked_out",
        message="You're checked out. See you again!",
        record=record
    )


@router.get("/today", response_model=AttendanceStatusResponse)
async def get_today_status(
    gym_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_member_user)
):
    member = await resolve_present_member(db, current_user, gym_id)
    today = await get_status_today(db, member.gym_id, member.id)
    return AttendanceStatusResponse(status=today.status, message=today.message, record=today.record)


@router.get("/history", response_model=List[AttendanceRecord])
async def get_history(
    limit: Optional[int] = Query(None, ge=1, le=200),
    gym_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_member_user)
):
    member = await resolve_member_for_user(db, current_user, gym_id)
    return await member_history(db, member.gym_id, member.id, limit)


@router.get("/active", response_model=Optional[AttendanceRecord])
async def get_active_check_in(
    gym_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_member_user)
):
    member = await resolve_present_member(db, current_user, gym_id)
    return await active_check_in(db, member.gym_id, member.id)
