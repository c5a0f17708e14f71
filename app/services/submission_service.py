import csv
import hashlib
import io
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import FormClosedError, FormNotFoundError, SubmissionNotFoundError
from app.models.form import SignUpForm
from app.models.form_submission import FormSubmission
from app.services.field_schema import CONTACT_FIELD_IDS, lookup_response
from app.services.form_service import FormService
from app.utils.dates import as_utc, parse_timestamp, utcnow

logger = logging.getLogger(__name__)


class IntakeValidationError(ValueError):
    """Webhook body is missing a required element."""


def dedupe_key(name: str, email: Optional[str], submitted_at: datetime) -> str:
    """Digest of the (submitter name, email, exact timestamp) de-duplication triple."""
    stamp = as_utc(submitted_at).isoformat()
    raw = "\x1f".join([name or "", email or "", stamp])
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def parse_member_id(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(str(value).strip(), 10)
    except ValueError:
        return None


class SubmissionService:
    @staticmethod
    def find_duplicate(db: Session, form_id: str, name: str, email: Optional[str], submitted_at: datetime) -> Optional[FormSubmission]:
        return db.query(FormSubmission).filter(
            FormSubmission.form_id == form_id,
            FormSubmission.dedupe_key == dedupe_key(name, email, submitted_at),
        ).first()

    @staticmethod
    def insert_if_absent(db: Session, form_id: str, name: str, submitted_at: datetime, email: Optional[str] = None,
                         phone: Optional[str] = None, member_id: Optional[int] = None,
                         responses: Optional[Dict[str, Any]] = None) -> Tuple[FormSubmission, bool]:
        """
        Insert a submission unless one with the same de-duplication key exists.

        The pre-check handles the common case; the unique constraint settles
        races between concurrent writers. Returns (submission, created).
        """
        submitted_at = as_utc(submitted_at)
        existing = SubmissionService.find_duplicate(db, form_id, name, email, submitted_at)
        if existing:
            return existing, False

        submission = FormSubmission(
            form_id=form_id,
            member_id=member_id,
            name=name,
            email=email or None,
            phone=phone or None,
            responses=responses or {},
            submitted_at=submitted_at,
            dedupe_key=dedupe_key(name, email, submitted_at),
        )
        try:
            with db.begin_nested():
                db.add(submission)
        except IntegrityError:
            logger.info("Submission for form %s already stored by a concurrent writer", form_id)
            db.rollback()
            existing = SubmissionService.find_duplicate(db, form_id, name, email, submitted_at)
            return existing, False

        db.commit()
        return submission, True

    @staticmethod
    def check_accepting(db: Session, form: SignUpForm, now: Optional[datetime] = None) -> None:
        now = now or utcnow()
        if not form.is_active:
            raise FormClosedError(FormClosedError.INACTIVE)
        if form.deadline and now > as_utc(form.deadline):
            raise FormClosedError(FormClosedError.DEADLINE_PASSED)
        if form.max_entries and FormService.submission_count(db, form.id) >= form.max_entries:
            raise FormClosedError(FormClosedError.CAPACITY_REACHED)

    @staticmethod
    def validate_payload(payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise IntakeValidationError("Request body must be a JSON object")
        if not payload.get("formId"):
            raise IntakeValidationError("formId is required")

        submitter = payload.get("submitter")
        if not isinstance(submitter, dict) or not submitter.get("name"):
            raise IntakeValidationError("submitter.name is required")
        for key in ("email", "phone"):
            if submitter.get(key) is not None and not isinstance(submitter[key], str):
                raise IntakeValidationError(f"submitter.{key} must be a string")

        # {} is a valid (empty) response set; only absence is rejected
        if not isinstance(payload.get("responses"), dict):
            raise IntakeValidationError("responses object is required")

        try:
            submitted_at = parse_timestamp(payload.get("submittedAt"))
        except (TypeError, ValueError):
            raise IntakeValidationError("submittedAt must be an ISO-8601 timestamp")

        return {
            "form_id": str(payload["formId"]),
            "name": str(submitter["name"]),
            "email": submitter.get("email") or None,
            "phone": submitter.get("phone") or None,
            "member_id": parse_member_id(submitter.get("memberId")),
            "responses": payload["responses"],
            "submitted_at": submitted_at,
        }

    @staticmethod
    def intake(db: Session, payload: Any) -> Tuple[FormSubmission, bool]:
        """
        Accept a submission pushed by the portal.

        Raises IntakeValidationError, FormNotFoundError or FormClosedError.
        Returns (submission, created); created is False on redelivery of a
        submission that is already stored.
        """
        data = SubmissionService.validate_payload(payload)

        form = db.query(SignUpForm).filter(SignUpForm.id == data["form_id"]).first()
        if not form:
            raise FormNotFoundError(data["form_id"])

        SubmissionService.check_accepting(db, form)

        submitted_at = data["submitted_at"] or utcnow()

        return SubmissionService.insert_if_absent(
            db,
            form_id=form.id,
            name=data["name"],
            email=data["email"],
            phone=data["phone"],
            member_id=data["member_id"],
            responses=data["responses"],
            submitted_at=submitted_at,
        )

    @staticmethod
    def list_submissions(db: Session, form_id: str) -> Tuple[SignUpForm, List[FormSubmission]]:
        form = FormService.get_form(db, form_id)
        submissions = (
            db.query(FormSubmission)
            .filter(FormSubmission.form_id == form_id)
            .order_by(FormSubmission.submitted_at.desc())
            .all()
        )
        return form, submissions

    @staticmethod
    def delete_submission(db: Session, form_id: str, submission_id: str) -> None:
        submission = db.query(FormSubmission).filter(
            FormSubmission.id == submission_id,
            FormSubmission.form_id == form_id,
        ).first()
        if not submission:
            raise SubmissionNotFoundError(submission_id)
        db.delete(submission)
        db.commit()

    @staticmethod
    def _cell(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return "; ".join(str(v) for v in value)
        return str(value)

    @staticmethod
    def export_csv(form: SignUpForm, submissions: List[FormSubmission]) -> str:
        custom_fields = [f for f in form.fields if (f.field_id or "") not in CONTACT_FIELD_IDS]

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(["Name", "Email", "Phone", "Member ID"] + [f.label for f in custom_fields] + ["Submitted At"])

        for sub in submissions:
            writer.writerow(
                [sub.name, sub.email or "", sub.phone or "", SubmissionService._cell(sub.member_id)]
                + [SubmissionService._cell(lookup_response(f, sub.responses)) for f in custom_fields]
                + [as_utc(sub.submitted_at).isoformat()]
            )
        return buffer.getvalue()

    @staticmethod
    def export_filename(form: SignUpForm) -> str:
        slug = "_".join(form.title.split()) or "form"
        return f"{slug}_submissions_{utcnow().date().isoformat()}.csv"
