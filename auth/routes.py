# auth/routes.py
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from auth.services import AuthService
from auth.schemas import ProfileResponse
from auth.models import Profile
from database import get_db
from subscription.services import SubscriptionService

router = APIRouter(prefix="/auth", tags=["auth"])
bearer_scheme = HTTPBearer(auto_error=False)

def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme), db: Session = Depends(get_db)) -> Profile:
    """Retrieve the current authenticated user."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = AuthService.decode_access_token(credentials.credentials)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthService.get_profile(user_id, db)

def check_admin_role(current_user: Profile = Depends(get_current_user)) -> Profile:
    """Ensure the user has admin role."""
    if current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user

def check_staff_role(current_user: Profile = Depends(get_current_user)) -> Profile:
    """Ensure the user is a teacher or an admin."""
    if current_user.role not in ("teacher", "admin"):
        raise HTTPException(status_code=403, detail="Teacher or admin access required")
    return current_user

@router.get("/me", response_model=ProfileResponse)
def read_users_me(current_user: Profile = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get current profile with the premium flag computed at read time."""
    active_sub = SubscriptionService.get_active_subscription(current_user.user_id, db)
    return {
        "user_id": current_user.user_id,
        "full_name": current_user.full_name,
        "grade": current_user.grade,
        "role": current_user.role,
        "created_at": current_user.created_at,
        "is_premium": SubscriptionService.is_premium(active_sub),
    }
