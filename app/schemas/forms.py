from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.enums import BulletinCategory, FieldType, OPTION_FIELD_TYPES


class FieldInput(BaseModel):
    label: str = Field(..., min_length=1, max_length=200)
    field_type: FieldType
    field_id: Optional[str] = Field(None, max_length=100)
    required: bool = False
    order: Optional[int] = None
    options: Optional[List[str]] = None
    placeholder: Optional[str] = Field(None, max_length=200)

    @field_validator("options")
    @classmethod
    def strip_empty_options(cls, value):
        if value is None:
            return None
        cleaned = [o.strip() for o in value if o and o.strip()]
        return cleaned or None

    def normalized_options(self) -> Optional[List[str]]:
        return self.options if self.field_type in OPTION_FIELD_TYPES else None


class FormCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    max_entries: Optional[int] = Field(None, ge=1)
    category: BulletinCategory = BulletinCategory.PROGRAM_EVENTS
    fields: List[FieldInput] = Field(..., min_length=1)


class FormChanges(BaseModel):
    """Partial update. Only attributes explicitly sent are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    max_entries: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None
    category: Optional[BulletinCategory] = None
    fields: Optional[List[FieldInput]] = Field(None, min_length=1)

    def present(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class FieldResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    field_id: Optional[str] = None
    label: str
    field_type: str
    required: bool
    order: int
    options: Optional[List[str]] = None
    placeholder: Optional[str] = None


class FormResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    portal_form_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    max_entries: Optional[int] = None
    is_active: bool
    category: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    synced_at: Optional[datetime] = None
    fields: List[FieldResponse] = []
    submission_count: int = 0


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    form_id: str
    member_id: Optional[int] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    responses: Dict[str, Any] = {}
    submitted_at: datetime


class SyncRequest(BaseModel):
    form_id: Optional[str] = None
    since: Optional[datetime] = None
