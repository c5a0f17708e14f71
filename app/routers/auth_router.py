from fastapi import APIRouter, HTTPException, Depends, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel

from app.core.database import get_db
from app.core.security import get_current_user
from app.services.auth_service import AuthService
from app.services.activity_service import ActivityService
from app.models.user import User

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/login")
def login(request: LoginRequest, req: Request, db: Session = Depends(get_db)):
    user = AuthService.authenticate_user(request.email, request.password, db)
    if not user:
        ActivityService.log(
            db,
            action="LOGIN_FAILED",
            entity_type="user",
            details={"email": request.email},
            request=req,
        )
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is inactive")

    ActivityService.log(
        db,
        action="LOGIN",
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        request=req,
    )

    return {**AuthService.generate_token(user), "user": AuthService.to_dict(user)}


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return AuthService.to_dict(current_user)
