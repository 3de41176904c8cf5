from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from trustroute.config import Settings
from trustroute.database import get_db
from trustroute.auth.schemas import (
    UserCreate, User, LoginRequest, AuthResponse, SessionResponse, ProfileUpdate, PasswordChange
)
from trustroute.auth.service import UserService
from trustroute.auth.utils import create_access_token
from trustroute.auth.dependencies import get_current_user, get_optional_user, get_settings
from trustroute.models import User as UserModel

router = APIRouter()
user_router = APIRouter()

@router.post("/signup", response_model=User, status_code=status.HTTP_201_CREATED)
def signup(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new user"""
    try:
        return UserService.create_user(db=db, user=user)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )

@router.post("/login", response_model=AuthResponse)
def login(
    login_data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Log in and set the session cookie"""
    user = UserService.authenticate_user(db, login_data.email, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": str(user.id), "email": user.email}, settings=settings
    )
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=access_token,
        httponly=True,
        samesite="lax",
        path="/",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        secure=settings.COOKIE_SECURE,
    )
    return AuthResponse(
        access_token=access_token,
        token_type="bearer",
        user=User.model_validate(user)
    )

@router.post("/logout")
def logout(response: Response, settings: Settings = Depends(get_settings)):
    """Clear the session cookie"""
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return {"message": "Logged out"}

@router.get("/session", response_model=SessionResponse)
def read_session(current_user=Depends(get_optional_user)):
    """Current user, or null when not logged in"""
    if current_user is None:
        return SessionResponse(user=None)
    return SessionResponse(user=User.model_validate(current_user))

@router.get("/me", response_model=User)
def read_users_me(current_user: UserModel = Depends(get_current_user)):
    """Get current user profile"""
    return current_user

@user_router.patch("/profile")
def update_profile(
    profile: ProfileUpdate,
    current_user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update current user profile"""
    updated_user = UserService.update_profile(db, current_user, profile)
    return {
        "user": User.model_validate(updated_user),
        "message": "Profile updated successfully"
    }

@user_router.post("/change-password")
def change_password(
    change: PasswordChange,
    current_user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change the current user's password"""
    try:
        UserService.change_password(db, current_user, change.current_password, change.new_password)
    except PermissionError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )
    return {"message": "Password updated successfully"}
