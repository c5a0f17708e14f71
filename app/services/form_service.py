import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import FormNotFoundError
from app.models.form import SignUpForm, FormField
from app.models.form_submission import FormSubmission
from app.models.user import User
from app.schemas.forms import FieldInput, FormChanges, FormCreate
from app.services.field_schema import resolve_field_id
from app.services.portal_client import PortalClient, SyncResult
from app.utils.dates import as_utc, utcnow

logger = logging.getLogger(__name__)

# attributes an explicit null may clear
NULLABLE_ATTRS = ("description", "max_entries")


class FormService:
    @staticmethod
    def _build_fields(field_inputs: List[FieldInput]) -> List[FormField]:
        fields = []
        for idx, data in enumerate(field_inputs):
            fields.append(FormField(
                field_id=resolve_field_id(data.label, data.field_id),
                label=data.label,
                field_type=data.field_type.value,
                required=data.required,
                order=data.order if data.order is not None else idx,
                options=data.normalized_options(),
                placeholder=data.placeholder or None,
            ))
        return sorted(fields, key=lambda f: f.order)

    @staticmethod
    def submission_count(db: Session, form_id: str) -> int:
        return db.query(func.count(FormSubmission.id)).filter(FormSubmission.form_id == form_id).scalar() or 0

    @staticmethod
    def list_forms(db: Session, include_inactive: bool = False) -> List[Tuple[SignUpForm, int]]:
        counts = (
            db.query(FormSubmission.form_id, func.count(FormSubmission.id).label("submission_count"))
            .group_by(FormSubmission.form_id)
            .subquery()
        )
        query = (
            db.query(SignUpForm, func.coalesce(counts.c.submission_count, 0))
            .outerjoin(counts, counts.c.form_id == SignUpForm.id)
            .options(selectinload(SignUpForm.fields))
        )
        if not include_inactive:
            query = query.filter(SignUpForm.is_active.is_(True))
        return query.order_by(SignUpForm.created_at.desc()).all()

    @staticmethod
    def get_form(db: Session, form_id: str) -> SignUpForm:
        form = db.query(SignUpForm).filter(SignUpForm.id == form_id).first()
        if not form:
            raise FormNotFoundError(form_id)
        return form

    @staticmethod
    def to_dict(form: SignUpForm, submission_count: int = 0) -> Dict[str, Any]:
        return {
            "id": form.id,
            "portal_form_id": form.portal_form_id,
            "title": form.title,
            "description": form.description,
            "deadline": as_utc(form.deadline),
            "max_entries": form.max_entries,
            "is_active": form.is_active,
            "category": form.category,
            "created_by": form.created_by,
            "created_at": form.created_at,
            "updated_at": form.updated_at,
            "synced_at": form.synced_at,
            "fields": [{
                "id": f.id,
                "field_id": f.field_id,
                "label": f.label,
                "field_type": f.field_type,
                "required": f.required,
                "order": f.order,
                "options": f.options,
                "placeholder": f.placeholder,
            } for f in form.fields],
            "submission_count": submission_count,
        }

    @staticmethod
    def _record_publish(db: Session, form: SignUpForm, result: SyncResult) -> None:
        if not result.success:
            logger.warning("Form %s saved locally but portal sync failed: %s", form.id, result.error)
            return
        if not form.portal_form_id:
            form.portal_form_id = result.remote_id or form.id
        form.synced_at = utcnow()
        db.commit()
        db.refresh(form)

    @staticmethod
    def create_form(db: Session, data: FormCreate, user: User, portal: PortalClient) -> Tuple[SignUpForm, SyncResult]:
        form = SignUpForm(
            title=data.title,
            description=data.description,
            deadline=as_utc(data.deadline),
            max_entries=data.max_entries,
            category=data.category.value,
            created_by=user.id,
            is_active=True,
        )
        form.fields = FormService._build_fields(data.fields)
        db.add(form)
        db.commit()
        db.refresh(form)

        result = portal.publish(form, data.category.value, user.department)
        FormService._record_publish(db, form, result)
        return form, result

    @staticmethod
    def apply_changes(form: SignUpForm, changes: FormChanges) -> Dict[str, Any]:
        """Apply only the attributes present in ``changes``. Returns what was applied."""
        present = changes.present()
        applied: Dict[str, Any] = {}

        for key in ("title", "description", "max_entries", "is_active"):
            if key in present and (present[key] is not None or key in NULLABLE_ATTRS):
                setattr(form, key, present[key])
                applied[key] = present[key]

        if "deadline" in present:
            form.deadline = as_utc(changes.deadline)
            applied["deadline"] = form.deadline

        if "category" in present and changes.category is not None:
            form.category = changes.category.value
            applied["category"] = form.category

        if "fields" in present and changes.fields is not None:
            # whole field set is replaced; ids are not preserved
            form.fields = FormService._build_fields(changes.fields)
            applied["fields"] = form.fields

        return applied

    @staticmethod
    def update_form(
        db: Session, form_id: str, changes: FormChanges, user: User, portal: PortalClient
    ) -> Tuple[SignUpForm, SyncResult, Dict[str, Any]]:
        form = FormService.get_form(db, form_id)
        applied = FormService.apply_changes(form, changes)
        db.commit()
        db.refresh(form)

        if form.portal_form_id:
            result = portal.update(form.portal_form_id, applied)
            if result.success:
                form.synced_at = utcnow()
                db.commit()
                db.refresh(form)
            else:
                logger.warning("Form %s updated locally but portal update failed: %s", form.id, result.error)
        else:
            result = portal.publish(form, form.category, user.department)
            FormService._record_publish(db, form, result)

        return form, result, applied

    @staticmethod
    def delete_form(db: Session, form_id: str, portal: PortalClient) -> Tuple[str, SyncResult]:
        form = FormService.get_form(db, form_id)
        title = form.title

        # the portal keys forms it never acknowledged by our local id
        result = portal.retract(form.portal_form_id or form.id)
        if not result.success:
            logger.warning("Portal delete failed for form %s: %s", form.id, result.error)

        db.delete(form)
        db.commit()
        return title, result
