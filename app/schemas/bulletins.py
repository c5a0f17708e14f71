from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import BulletinCategory


class BulletinCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1)
    category: BulletinCategory = BulletinCategory.ANNOUNCEMENTS


class BulletinResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    subject: str
    category: str
    poster_url: Optional[str] = None
    user_id: Optional[str] = None
    author: Optional[str] = None
    synced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
