from pydantic import BaseModel, Field
from datetime import datetime, date
from typing import Optional, List, Literal

class AttendanceRecord(BaseModel):
    id: int
    gym_id: int
    member_id: int
    check_in_time: datetime
    check_out_time: Optional[datetime]
    status: str  # "in", "out"
    exit_type: Optional[str]  # "manual", "auto"; null while open
    source: str  # "qr_scan", "button", "admin"
    created_at: datetime

    model_config = {"from_attributes": True}

class QrScanRequest(BaseModel):
    qr_data: str = Field(..., min_length=1)

class AttendanceActionRequest(BaseModel):
    action: Literal["check_in", "check_out"]
    member_id: Optional[int] = None  # required for admin / trainer

class AttendanceActionResponse(BaseModel):
    status: str  # "checked_in", "checked_out"
    message: str
    record: AttendanceRecord

class AttendanceStatusResponse(BaseModel):
    status: str  # "not_checked_in", "in_gym", "checked_out"
    message: str
    record: Optional[AttendanceRecord] = None

class GymAttendanceItem(AttendanceRecord):
    member_name: str

class AttendanceStatsResponse(BaseModel):
    period: str
    total_check_ins: int
    unique_members: int
    currently_in_gym: int

class DailyCheckIns(BaseModel):
    date: date
    check_ins: int

class AttendanceDashboardResponse(BaseModel):
    today: int
    yesterday: int
    diff_from_yesterday: int
    trend: List[DailyCheckIns]
