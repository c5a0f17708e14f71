import hmac
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.config import PortalConfig, get_portal_config
from app.core.database import get_db
from app.core.exceptions import FormClosedError, FormNotFoundError
from app.services.submission_service import IntakeValidationError, SubmissionService
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def is_authorized(request: Request, config: PortalConfig) -> bool:
    supplied = request.headers.get("X-API-Key") or ""
    expected = config.api_key or ""
    # an unset key never authorizes anything
    return bool(expected) and hmac.compare_digest(supplied.encode(), expected.encode())


@router.post("/submissions/webhook")
async def receive_submission(
    request: Request,
    db: Session = Depends(get_db),
    config: PortalConfig = Depends(get_portal_config)
):
    """Receive a form submission pushed by the portal."""
    if not is_authorized(request, config):
        return _error(401, "Unauthorized - Invalid API key")

    try:
        payload = await request.json()
    except ValueError:
        return _error(400, "Request body must be valid JSON")

    try:
        submission, created = SubmissionService.intake(db, payload)
    except IntakeValidationError as e:
        return _error(400, str(e))
    except FormNotFoundError:
        return _error(404, "Form not found")
    except FormClosedError as e:
        return _error(400, e.reason)

    if created:
        logger.info("Stored portal submission %s for form %s", submission.id, submission.form_id)

    return JSONResponse(status_code=201, content={
        "success": True,
        "submissionId": submission.id,
        "duplicate": not created,
        "message": "Submission received successfully" if created else "Submission already received",
    })


@router.get("/submissions/webhook")
def webhook_health():
    return {
        "status": "ok",
        "endpoint": "Form Submissions Webhook",
        "timestamp": utcnow().isoformat(),
    }
