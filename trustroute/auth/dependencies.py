import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from trustroute.config import Settings
from trustroute.database import get_db
from trustroute.auth.utils import verify_token
from trustroute.auth.service import UserService
from trustroute.models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def _read_token(request: Request, settings: Settings, bearer: Optional[str]) -> Optional[str]:
    # The cookie set at login wins over an Authorization header
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or bearer

def get_current_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = _read_token(request, settings, bearer)
    if not token:
        raise credentials_exception

    token_data = verify_token(token, settings, credentials_exception)

    user = UserService.get_user_by_id(db, user_id=token_data["user_id"])
    if user is None:
        raise credentials_exception

    return user

def get_optional_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Current user, or None for anonymous and invalid sessions"""
    try:
        return get_current_user(request, bearer, settings, db)
    except HTTPException:
        return None

def require_admin_key(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Gate maintenance endpoints behind the X-Admin-Key header"""
    provided = request.headers.get("X-Admin-Key")
    if not settings.ADMIN_API_KEY or not provided or not secrets.compare_digest(provided, settings.ADMIN_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
