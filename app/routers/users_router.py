from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import DuplicateEmailError, UserNotFoundError
from app.core.permissions import require_admin
from app.models.user import User
from app.schemas.users import UserCreate, UserResponse, UserUpdate
from app.services.activity_service import ActivityService
from app.services.user_service import UserService

router = APIRouter()


def _user_dict(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump()


@router.get("")
@router.get("/")
def list_users(db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    return {"users": [_user_dict(u) for u in UserService.list_users(db)]}


@router.post("", status_code=201)
@router.post("/", status_code=201)
def create_user(
    body: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    try:
        user = UserService.create_user(db, body)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=400, detail=str(e))

    ActivityService.log(
        db=db,
        action="CREATE",
        entity_type="user",
        entity_id=user.id,
        user_id=current_user.id,
        details={"email": user.email, "role": user.role},
        request=request,
    )
    return {"user": _user_dict(user)}


@router.get("/{user_id}")
def get_user(user_id: str, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    try:
        return {"user": _user_dict(UserService.get_user(db, user_id))}
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")


@router.patch("/{user_id}")
def update_user(
    user_id: str,
    body: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    if user_id == current_user.id and body.is_active is False:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    try:
        user = UserService.update_user(db, user_id, body)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except DuplicateEmailError:
        raise HTTPException(status_code=400, detail="This email is already in use")

    ActivityService.log(
        db=db,
        action="UPDATE",
        entity_type="user",
        entity_id=user.id,
        user_id=current_user.id,
        details={"fields": sorted(body.model_dump(exclude_unset=True, exclude={"password"}))},
        request=request,
    )
    return {"user": _user_dict(user)}


@router.delete("/{user_id}")
def deactivate_user(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    try:
        user = UserService.deactivate_user(db, user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")

    ActivityService.log(
        db=db,
        action="DEACTIVATE",
        entity_type="user",
        entity_id=user.id,
        user_id=current_user.id,
        request=request,
    )
    return {"message": "User deactivated successfully"}
