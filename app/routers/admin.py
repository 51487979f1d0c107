from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.core.auth import get_current_admin
from app.models.qr_config import QrConfig
from app.schemas.qr import QrConfigResponse, QrToggleRequest
from app.services.qr_config import build_qr_payload, get_or_create_config, regenerate_secret, set_enabled


router = APIRouter(prefix="/admin", tags=["admin"])


def qr_config_response(config: QrConfig, include_payload: bool = True) -> QrConfigResponse:
    return QrConfigResponse(
        gym_id=config.gym_id,
        is_enabled=config.is_enabled,
        qr_data=build_qr_payload(config) if include_payload else None,
        last_rotated_at=config.last_rotated_at
    )


@router.get("/attendance/qr/config", response_model=QrConfigResponse)
async def get_qr_config(
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    config = await get_or_create_config(db, admin.gym_id)
    return qr_config_response(config)


@router.post("/attendance/qr/generate", response_model=QrConfigResponse)
async def generate_qr_secret(
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    # Every QR code printed before this call stops working
    config = await regenerate_secret(db, admin.gym_id)
    return qr_config_response(config)


@router.post("/attendance/qr/toggle", response_model=QrConfigResponse)
async def toggle_qr_attendance(
    toggle_in: QrToggleRequest,
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    config = await set_enabled(db, admin.gym_id, toggle_in.is_enabled)
    return qr_config_response(config, include_payload=False)
