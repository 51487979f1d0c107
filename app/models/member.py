from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from app.database import Base
from app.models.types import UTCDateTime
from app.utils.timeutils import utcnow

class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # NULL = walk-in profile without login
    gym_id = Column(Integer, ForeignKey("gyms.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    status = Column(String, nullable=False, default="active")  # active, inactive
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "gym_id", name="uq_member_user_gym"),)
