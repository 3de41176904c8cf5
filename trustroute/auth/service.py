import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from trustroute.models import User
from trustroute.auth.schemas import UserCreate, ProfileUpdate
from trustroute.auth.utils import get_password_hash, verify_password
from typing import Optional

logger = logging.getLogger(__name__)

class UserService:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def create_user(db: Session, user: UserCreate) -> User:
        """Create a new user"""
        if UserService.get_user_by_email(db, user.email):
            raise ValueError("User already exists")

        db_user = User(
            name=user.name,
            email=user.email,
            password=get_password_hash(user.password)
        )

        try:
            db.add(db_user)
            db.commit()
            db.refresh(db_user)
        except IntegrityError:
            db.rollback()
            raise ValueError("User already exists")

        logger.info("User %s signed up", db_user.id)
        return db_user

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        user = UserService.get_user_by_email(db, email)
        if not user:
            return None
        if not verify_password(password, user.password):
            return None
        return user

    @staticmethod
    def update_profile(db: Session, user: User, profile: ProfileUpdate) -> User:
        """Update name and phone number"""
        update_data = profile.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(user, field, value)

        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
        """Replace the password after checking the current one"""
        if not verify_password(current_password, user.password):
            raise PermissionError("Incorrect current password")

        user.password = get_password_hash(new_password)
        db.commit()
        logger.info("User %s changed password", user.id)
