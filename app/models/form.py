from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Integer, Boolean, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import Base
import uuid


class SignUpForm(Base):
    __tablename__ = "signup_form"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    portal_form_id = Column(String, unique=True, nullable=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    deadline = Column(DateTime(timezone=True), nullable=True)
    max_entries = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    category = Column(String(30), nullable=False, default="PROGRAM_EVENTS")
    created_by = Column(String, ForeignKey('app_user.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    synced_at = Column(DateTime(timezone=True), nullable=True)

    fields = relationship(
        "FormField",
        back_populates="form",
        order_by="FormField.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    submissions = relationship(
        "FormSubmission",
        back_populates="form",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class FormField(Base):
    __tablename__ = "form_field"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    form_id = Column(String, ForeignKey('signup_form.id', ondelete='CASCADE'), nullable=False, index=True)
    field_id = Column(String(100), nullable=True)  # semantic id used for portal auto-fill
    label = Column(String(200), nullable=False)
    field_type = Column(String(20), nullable=False)
    required = Column(Boolean, default=False)
    order = Column(Integer, nullable=False)
    options = Column(JSON, nullable=True)  # SELECT / MULTISELECT only
    placeholder = Column(String(200), nullable=True)

    form = relationship("SignUpForm", back_populates="fields")
