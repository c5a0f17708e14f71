"""
Pulls portal submissions into the local form store.

The portal identifies forms by its own id, by the local id it was
published with, or both, so every incoming item is mapped back to a
local form before it is de-duplicated and stored.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.models.form import SignUpForm
from app.services.form_service import FormService
from app.services.portal_client import PortalClient
from app.services.submission_service import SubmissionService, parse_member_id
from app.utils.dates import parse_timestamp

logger = logging.getLogger(__name__)


class PullResult(BaseModel):
    synced: int = 0
    skipped: int = 0
    total: int = 0


def resolve_local_form_id(
    item_form_id: Optional[str],
    caller_form_id: Optional[str],
    by_portal_id: Callable[[str], Optional[str]],
    by_local_id: Callable[[str], Optional[str]],
) -> Optional[str]:
    """
    Map a portal submission to a local form id.

    Resolution order:
      1. the form id the caller asked to pull, applied to every item
      2. a local form whose stored portal id equals the item's form id
      3. a local form whose own id equals the item's form id
    Returns None when nothing matches.
    """
    if caller_form_id:
        return caller_form_id
    if not item_form_id:
        return None
    return by_portal_id(item_form_id) or by_local_id(item_form_id)


def _is_well_formed(item) -> bool:
    if not isinstance(item, dict) or not isinstance(item.get("name"), str):
        return False
    return all(item.get(key) is None or isinstance(item[key], str) for key in ("email", "phone"))


class SubmissionPuller:
    def __init__(self, db: Session, portal: PortalClient):
        self.db = db
        self.portal = portal

    def _by_portal_id(self, portal_form_id: str) -> Optional[str]:
        row = self.db.query(SignUpForm.id).filter(SignUpForm.portal_form_id == portal_form_id).first()
        return row[0] if row else None

    def _by_local_id(self, form_id: str) -> Optional[str]:
        row = self.db.query(SignUpForm.id).filter(SignUpForm.id == form_id).first()
        return row[0] if row else None

    def pull(self, form_id: Optional[str] = None, since: Optional[datetime] = None) -> PullResult:
        """
        Fetch submissions from the portal and store the new ones.

        Raises FormNotFoundError when ``form_id`` is unknown locally and
        PortalSyncError when the portal list call fails. Inserts already
        committed before a failure are kept.
        """
        if form_id:
            FormService.get_form(self.db, form_id)

        items = self.portal.list_submissions(form_id=form_id, since=since.isoformat() if since else None)
        result = PullResult(total=len(items))

        for item in items:
            if not _is_well_formed(item):
                logger.warning("Skipping malformed portal submission: %r", item)
                result.skipped += 1
                continue

            target = resolve_local_form_id(
                str(item["formId"]) if item.get("formId") is not None else None,
                form_id,
                self._by_portal_id,
                self._by_local_id,
            )
            if not target:
                logger.warning("Form %s not found locally, skipping submission", item.get("formId"))
                result.skipped += 1
                continue

            try:
                submitted_at = parse_timestamp(item.get("submittedAt"))
            except (TypeError, ValueError):
                submitted_at = None
            if not item.get("name") or submitted_at is None:
                logger.warning("Skipping malformed portal submission for form %s", target)
                result.skipped += 1
                continue

            _, created = SubmissionService.insert_if_absent(
                self.db,
                form_id=target,
                name=item["name"],
                email=item.get("email") or None,
                phone=item.get("phone") or None,
                member_id=parse_member_id(item.get("memberId")),
                responses=item.get("responses") if isinstance(item.get("responses"), dict) else {},
                submitted_at=submitted_at,
            )
            if created:
                result.synced += 1
            else:
                result.skipped += 1

        logger.info("Portal pull complete: synced=%s skipped=%s total=%s", result.synced, result.skipped, result.total)
        return result
