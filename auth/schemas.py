# auth/schemas.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

class ProfileResponse(BaseModel):
    """Schema for profile response."""
    user_id: str
    full_name: Optional[str] = None
    grade: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None
    is_premium: bool = False

    class Config:
        from_attributes = True
