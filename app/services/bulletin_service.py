import logging
from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.core.exceptions import BulletinNotFoundError
from app.models.bulletin import Bulletin
from app.models.user import User
from app.schemas.bulletins import BulletinCreate, BulletinResponse
from app.services.portal_client import PortalClient, SyncResult
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


class BulletinService:
    @staticmethod
    def create_bulletin(db: Session, data: BulletinCreate, user: User) -> Bulletin:
        bulletin = Bulletin(
            title=data.title.strip(),
            subject=data.subject.strip(),
            category=data.category.value,
            user_id=user.id,
        )
        db.add(bulletin)
        db.commit()
        db.refresh(bulletin)
        return bulletin

    @staticmethod
    def list_bulletins(db: Session, category: Optional[str] = None, limit: int = 50) -> List[Bulletin]:
        query = db.query(Bulletin)
        if category:
            query = query.filter(Bulletin.category == category)
        return query.order_by(desc(Bulletin.created_at)).limit(limit).all()

    @staticmethod
    def get_bulletin(db: Session, bulletin_id: str) -> Bulletin:
        bulletin = db.query(Bulletin).filter(Bulletin.id == bulletin_id).first()
        if not bulletin:
            raise BulletinNotFoundError(bulletin_id)
        return bulletin

    @staticmethod
    def attach_poster(db: Session, bulletin_id: str, filename: str, content: bytes, content_type: str,
                      portal: PortalClient) -> Bulletin:
        """Upload the poster to the portal and keep its URL. Raises PortalSyncError."""
        bulletin = BulletinService.get_bulletin(db, bulletin_id)
        bulletin.poster_url = portal.upload_poster(bulletin.id, filename, content, content_type)
        db.commit()
        db.refresh(bulletin)
        return bulletin

    @staticmethod
    def push(db: Session, bulletin_id: str, portal: PortalClient) -> Tuple[Bulletin, SyncResult]:
        bulletin = BulletinService.get_bulletin(db, bulletin_id)
        result = portal.push_bulletin(bulletin)
        if result.success:
            bulletin.synced_at = utcnow()
            db.commit()
            db.refresh(bulletin)
        else:
            logger.warning("Bulletin %s saved locally but portal sync failed: %s", bulletin.id, result.error)
        return bulletin, result

    @staticmethod
    def to_dict(bulletin: Bulletin) -> dict:
        data = BulletinResponse.model_validate(bulletin).model_dump()
        data["author"] = bulletin.user.full_name if bulletin.user else None
        return data
