from sqlalchemy import Column, Integer, String
from app.database import Base
from app.models.types import UTCDateTime
from app.utils.timeutils import utcnow

class Gym(Base):
    __tablename__ = "gyms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
