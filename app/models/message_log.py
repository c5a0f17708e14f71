from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from .base import Base
import uuid


class SmsLog(Base):
    __tablename__ = "sms_log"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    message = Column(Text, nullable=False)
    recipients = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, index=True)
    message_ids = Column(JSON, nullable=False, default=list)
    error = Column(Text, nullable=True)
    user_id = Column(String, ForeignKey('app_user.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)


class EmailLog(Base):
    __tablename__ = "email_log"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    subject = Column(String(300), nullable=False)
    message = Column(Text, nullable=False)
    recipients = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, index=True)
    message_ids = Column(JSON, nullable=False, default=list)
    error = Column(Text, nullable=True)
    user_id = Column(String, ForeignKey('app_user.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
