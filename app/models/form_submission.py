from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import Base
import uuid


class FormSubmission(Base):
    __tablename__ = "form_submission"
    __table_args__ = (
        UniqueConstraint("form_id", "dedupe_key", name="ux_form_submission_dedupe"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    form_id = Column(String, ForeignKey('signup_form.id', ondelete='CASCADE'), nullable=False, index=True)
    member_id = Column(Integer, nullable=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    responses = Column(JSON, nullable=False, default=dict)
    submitted_at = Column(DateTime(timezone=True), nullable=False, index=True)
    # sha256 of (name, email, submitted_at); NULL emails still collide
    dedupe_key = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    form = relationship("SignUpForm", back_populates="submissions")
