# auth/models.py
from sqlalchemy import Column, String, DateTime
from database import Base
from datetime import datetime

class Profile(Base):
    """Represents a learner, teacher or admin profile keyed by the auth user id."""
    __tablename__ = "profiles"

    user_id: str = Column(String(36), primary_key=True, index=True)
    full_name: str = Column(String, nullable=True)
    grade: str = Column(String, nullable=True)
    role: str = Column(String, nullable=False, default="student")  # student, teacher, admin
    created_at: datetime = Column(DateTime, default=datetime.utcnow)
