from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from app.database import Base
from app.models.types import UTCDateTime
from app.utils.timeutils import utcnow

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="member")  # admin, trainer, member
    gym_id = Column(Integer, ForeignKey("gyms.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
