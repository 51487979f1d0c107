from pydantic import BaseModel
from datetime import datetime
from typing import Optional

class QrToggleRequest(BaseModel):
    is_enabled: bool

class QrConfigResponse(BaseModel):
    gym_id: int
    is_enabled: bool
    qr_data: Optional[str] = None  # JSON payload to render as the QR image
    last_rotated_at: datetime
