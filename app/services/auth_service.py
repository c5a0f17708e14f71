from typing import Optional

from sqlalchemy.orm import Session

from app.core.security import create_access_token, verify_password
from app.models.user import User


class AuthService:
    @staticmethod
    def authenticate_user(email: str, password: str, db: Session) -> Optional[User]:
        user = db.query(User).filter(User.email == email.lower().strip()).first()
        if not user or not verify_password(password, user.hashed_password):
            return None
        return user

    @staticmethod
    def generate_token(user: User) -> dict:
        token = create_access_token(data={"sub": user.email, "role": user.role, "department": user.department})
        return {"access_token": token, "token_type": "bearer"}

    @staticmethod
    def to_dict(user: User) -> dict:
        return {
            "id": user.id,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "department": user.department,
            "role": user.role,
        }
