from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import get_portal_client
from app.core.exceptions import FormNotFoundError, PortalSyncError, SubmissionNotFoundError
from app.core.permissions import require_staff
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.forms import FormChanges, FormCreate, FormResponse, SubmissionResponse, SyncRequest
from app.services.activity_service import ActivityService
from app.services.form_service import FormService
from app.services.portal_client import PortalClient
from app.services.submission_service import SubmissionService
from app.services.sync_service import SubmissionPuller

router = APIRouter()


def _log_sync_warning(db, action, form_id, user, error, request):
    ActivityService.log(
        db=db,
        action=action,
        entity_type="form",
        entity_id=form_id,
        user_id=user.id,
        details={"portal_error": error},
        request=request,
    )


def _run_pull(db: Session, portal: PortalClient, form_id: Optional[str], since: Optional[datetime]):
    try:
        result = SubmissionPuller(db, portal).pull(form_id=form_id, since=since)
    except FormNotFoundError:
        raise HTTPException(status_code=404, detail="Form not found locally")
    except PortalSyncError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return {
        "success": True,
        "message": f"Synced {result.synced} submissions, skipped {result.skipped} duplicates",
        **result.model_dump(),
    }


@router.get("", response_model=List[FormResponse])
@router.get("/", response_model=List[FormResponse])
def list_forms(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return [FormService.to_dict(form, count) for form, count in FormService.list_forms(db, include_inactive)]


# registered before /{form_id} so "sync" is not taken for a form id
@router.get("/sync")
def pull_submissions(
    form_id: Optional[str] = None,
    since: Optional[datetime] = None,
    db: Session = Depends(get_db),
    portal: PortalClient = Depends(get_portal_client),
    current_user: User = Depends(get_current_user)
):
    return _run_pull(db, portal, form_id, since)


@router.post("/sync")
def trigger_sync(
    body: SyncRequest,
    db: Session = Depends(get_db),
    portal: PortalClient = Depends(get_portal_client),
    current_user: User = Depends(get_current_user)
):
    return _run_pull(db, portal, body.form_id, body.since)


@router.post("", status_code=201)
@router.post("/", status_code=201)
def create_form(
    form: FormCreate,
    request: Request,
    db: Session = Depends(get_db),
    portal: PortalClient = Depends(get_portal_client),
    current_user: User = Depends(require_staff)
):
    created, sync = FormService.create_form(db, form, current_user, portal)

    ActivityService.log(
        db=db,
        action="CREATE",
        entity_type="form",
        entity_id=created.id,
        user_id=current_user.id,
        details={"title": created.title, "portal_synced": sync.success},
        request=request,
    )
    if not sync.success:
        _log_sync_warning(db, "PORTAL_SYNC_FAILED", created.id, current_user, sync.error, request)

    return {
        "success": True,
        "form": FormService.to_dict(created),
        "portal_synced": sync.success,
        "portal_form_id": created.portal_form_id,
        "portal_error": sync.error,
    }


@router.get("/{form_id}", response_model=FormResponse)
def get_form(
    form_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        form = FormService.get_form(db, form_id)
    except FormNotFoundError:
        raise HTTPException(status_code=404, detail="Form not found")
    return FormService.to_dict(form, FormService.submission_count(db, form_id))


@router.patch("/{form_id}")
def update_form(
    form_id: str,
    changes: FormChanges,
    request: Request,
    db: Session = Depends(get_db),
    portal: PortalClient = Depends(get_portal_client),
    current_user: User = Depends(require_staff)
):
    try:
        existing = FormService.get_form(db, form_id)
    except FormNotFoundError:
        raise HTTPException(status_code=404, detail="Form not found")

    diff = ActivityService.calculate_changes(existing, changes.present(), exclude=["fields"])
    updated, sync, applied = FormService.update_form(db, form_id, changes, current_user, portal)

    ActivityService.log(
        db=db,
        action="UPDATE",
        entity_type="form",
        entity_id=form_id,
        user_id=current_user.id,
        details={"title": updated.title, "changes": diff, "fields_replaced": "fields" in applied},
        request=request,
    )
    if not sync.success:
        _log_sync_warning(db, "PORTAL_SYNC_FAILED", form_id, current_user, sync.error, request)

    return {
        "success": True,
        "form": FormService.to_dict(updated, FormService.submission_count(db, form_id)),
        "portal_synced": sync.success,
        "portal_error": sync.error,
    }


@router.delete("/{form_id}")
def delete_form(
    form_id: str,
    request: Request,
    db: Session = Depends(get_db),
    portal: PortalClient = Depends(get_portal_client),
    current_user: User = Depends(require_staff)
):
    try:
        title, sync = FormService.delete_form(db, form_id, portal)
    except FormNotFoundError:
        raise HTTPException(status_code=404, detail="Form not found")

    ActivityService.log(
        db=db,
        action="DELETE",
        entity_type="form",
        entity_id=form_id,
        user_id=current_user.id,
        details={"title": title, "portal_synced": sync.success, "portal_error": sync.error},
        request=request,
    )

    return {
        "success": True,
        "message": "Form deleted successfully",
        "portal_synced": sync.success,
        "portal_error": sync.error,
    }


@router.get("/{form_id}/submissions")
def list_submissions(
    form_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        form, submissions = SubmissionService.list_submissions(db, form_id)
    except FormNotFoundError:
        raise HTTPException(status_code=404, detail="Form not found")

    form_data = FormService.to_dict(form, len(submissions))
    return {
        "success": True,
        "form": {"id": form.id, "title": form.title, "fields": form_data["fields"]},
        "submissions": [SubmissionResponse.model_validate(s).model_dump() for s in submissions],
        "total_count": len(submissions),
    }


@router.get("/{form_id}/submissions/export")
def export_submissions(
    form_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        form, submissions = SubmissionService.list_submissions(db, form_id)
    except FormNotFoundError:
        raise HTTPException(status_code=404, detail="Form not found")

    content = SubmissionService.export_csv(form, submissions)
    filename = SubmissionService.export_filename(form)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/{form_id}/submissions/{submission_id}")
def delete_submission(
    form_id: str,
    submission_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    try:
        SubmissionService.delete_submission(db, form_id, submission_id)
    except SubmissionNotFoundError:
        raise HTTPException(status_code=404, detail="Submission not found")

    ActivityService.log(
        db=db,
        action="DELETE",
        entity_type="form_submission",
        entity_id=submission_id,
        user_id=current_user.id,
        details={"form_id": form_id},
        request=request,
    )
    return {"success": True, "message": "Submission deleted successfully"}
