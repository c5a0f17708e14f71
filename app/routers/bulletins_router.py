from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import get_portal_client
from app.core.enums import BulletinCategory, STAFF_ROLES
from app.core.exceptions import BulletinNotFoundError, PortalSyncError
from app.core.permissions import RoleRequired
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.bulletins import BulletinCreate
from app.services.activity_service import ActivityService
from app.services.bulletin_service import BulletinService
from app.services.portal_client import PortalClient

router = APIRouter()

require_publisher = RoleRequired(STAFF_ROLES, "post bulletins")

MAX_POSTER_BYTES = 10 * 1024 * 1024


@router.get("")
@router.get("/")
def list_bulletins(
    category: Optional[BulletinCategory] = None,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    bulletins = BulletinService.list_bulletins(db, category.value if category else None, limit)
    return {"success": True, "data": [BulletinService.to_dict(b) for b in bulletins]}


@router.post("", status_code=201)
@router.post("/", status_code=201)
def create_bulletin(
    body: BulletinCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_publisher)
):
    bulletin = BulletinService.create_bulletin(db, body, current_user)
    ActivityService.log(
        db=db,
        action="CREATE",
        entity_type="bulletin",
        entity_id=bulletin.id,
        user_id=current_user.id,
        details={"title": bulletin.title, "category": bulletin.category},
        request=request,
    )
    return {"success": True, "data": BulletinService.to_dict(bulletin)}


@router.post("/{bulletin_id}/poster")
async def upload_poster(
    bulletin_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    portal: PortalClient = Depends(get_portal_client),
    current_user: User = Depends(require_publisher)
):
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Poster must be an image")
    content = await file.read()
    if len(content) > MAX_POSTER_BYTES:
        raise HTTPException(status_code=400, detail="Poster exceeds 10 MB")

    try:
        bulletin = BulletinService.attach_poster(db, bulletin_id, file.filename, content, file.content_type, portal)
    except BulletinNotFoundError:
        raise HTTPException(status_code=404, detail="Bulletin not found")
    except PortalSyncError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return {"success": True, "data": BulletinService.to_dict(bulletin)}


@router.post("/{bulletin_id}/sync")
def sync_bulletin(
    bulletin_id: str,
    request: Request,
    db: Session = Depends(get_db),
    portal: PortalClient = Depends(get_portal_client),
    current_user: User = Depends(require_publisher)
):
    try:
        bulletin = BulletinService.get_bulletin(db, bulletin_id)
    except BulletinNotFoundError:
        raise HTTPException(status_code=404, detail="Bulletin not found")
    if not bulletin.poster_url:
        raise HTTPException(status_code=400, detail="Upload a poster before syncing")

    bulletin, sync = BulletinService.push(db, bulletin_id, portal)
    if not sync.success:
        ActivityService.log(
            db=db,
            action="PORTAL_SYNC_FAILED",
            entity_type="bulletin",
            entity_id=bulletin_id,
            user_id=current_user.id,
            details={"portal_error": sync.error},
            request=request,
        )

    return {
        "success": True,
        "data": BulletinService.to_dict(bulletin),
        "portal_synced": sync.success,
        "portal_error": sync.error,
    }
