from typing import List

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateEmailError, UserNotFoundError
from app.core.security import get_password_hash
from app.models.user import User
from app.schemas.users import UserCreate, UserUpdate


class UserService:
    @staticmethod
    def list_users(db: Session) -> List[User]:
        return db.query(User).order_by(desc(User.created_at)).all()

    @staticmethod
    def get_user(db: Session, user_id: str) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise UserNotFoundError(user_id)
        return user

    @staticmethod
    def _email_taken(db: Session, email: str) -> bool:
        return db.query(User.id).filter(User.email == email).first() is not None

    @staticmethod
    def create_user(db: Session, data: UserCreate) -> User:
        if UserService._email_taken(db, data.email):
            raise DuplicateEmailError(data.email)

        user = User(
            email=data.email,
            hashed_password=get_password_hash(data.password),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            department=data.department.value,
            role=data.role.value,
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update_user(db: Session, user_id: str, data: UserUpdate) -> User:
        user = UserService.get_user(db, user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "email" in changes and changes["email"] != user.email:
            if UserService._email_taken(db, changes["email"]):
                raise DuplicateEmailError(changes["email"])

        if "password" in changes:
            user.hashed_password = get_password_hash(changes.pop("password"))

        for key, value in changes.items():
            setattr(user, key, value.value if hasattr(value, "value") else value)

        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def deactivate_user(db: Session, user_id: str) -> User:
        # accounts are disabled, never deleted
        user = UserService.get_user(db, user_id)
        user.is_active = False
        db.commit()
        db.refresh(user)
        return user
