from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import Base
import uuid


class Bulletin(Base):
    __tablename__ = "bulletin"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    title = Column(String(200), nullable=False)
    subject = Column(Text, nullable=False)
    category = Column(String(30), nullable=False, index=True)
    poster_url = Column(String(500), nullable=True)  # absolute URL on the portal host
    user_id = Column(String, ForeignKey('app_user.id', ondelete='SET NULL'), nullable=True)
    synced_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    user = relationship("User", lazy="joined")
