from sqlalchemy import Column, String, DateTime, ForeignKey, Text, JSON, Index
from sqlalchemy.sql import func
from .base import Base
import uuid


class ActivityLog(Base):
    """Audit trail of staff actions and portal sync warnings."""
    __tablename__ = "activity_log"
    __table_args__ = (
        Index("ix_activity_log_entity", "entity_type", "entity_id"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey('app_user.id', ondelete='SET NULL'), nullable=True)
    action = Column(String(50), nullable=False, index=True)  # CREATE, UPDATE, PORTAL_SYNC_FAILED, ...
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String, nullable=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
