from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from app.database import Base
from app.models.types import UTCDateTime
from app.utils.timeutils import utcnow

class QrConfig(Base):
    __tablename__ = "attendance_qr_config"

    id = Column(Integer, primary_key=True, index=True)
    gym_id = Column(Integer, ForeignKey("gyms.id"), unique=True, nullable=False)
    secret = Column(String, nullable=False)  # shared credential embedded in the QR payload
    is_enabled = Column(Boolean, default=True, nullable=False)
    last_rotated_at = Column(UTCDateTime, default=utcnow, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
