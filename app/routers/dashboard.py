from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.core.auth import get_current_staff
from app.schemas.attendance import AttendanceDashboardResponse
from app.services.attendance_queries import daily_check_in_counts

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

@router.get("/attendance", response_model=AttendanceDashboardResponse)
async def get_attendance_dashboard(
    days: int = Query(7, ge=2, le=31),
    db: AsyncSession = Depends(get_db),
    staff = Depends(get_current_staff)
):
    # Counts only; reads check-in times produced by the attendance write path
    counts = await daily_check_in_counts(db, staff.gym_id, days=days)
    return AttendanceDashboardResponse(
        today=counts.today,
        yesterday=counts.yesterday,
        diff_from_yesterday=counts.diff_from_yesterday,
        trend=counts.trend
    )
