# auth/services.py
import logging

from sqlalchemy.orm import Session
from jose import JWTError, jwt
from typing import Optional
from auth.models import Profile
from config import settings

logger = logging.getLogger(__name__)

class AuthService:
    @staticmethod
    def decode_access_token(token: str) -> Optional[str]:
        """Return the user id carried by a valid token, or None."""
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=[settings.JWT_ALGORITHM],
                audience=settings.JWT_AUDIENCE,
            )
        except JWTError as e:
            logger.info(f"Rejected access token: {str(e)}")
            return None
        return payload.get("sub")

    @staticmethod
    def get_profile(user_id: str, db: Session) -> Profile:
        """Load the caller's profile; users without one are plain students."""
        profile = db.query(Profile).filter(Profile.user_id == user_id).first()
        if profile is None:
            profile = Profile(user_id=user_id, role="student")
        return profile
