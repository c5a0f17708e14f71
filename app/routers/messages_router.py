from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import get_email_sender, get_sms_sender
from app.core.enums import MessageStatus, Role
from app.core.exceptions import InvalidRecipientError
from app.core.permissions import require_staff
from app.core.security import get_current_user
from app.models.message_log import EmailLog, SmsLog
from app.models.user import User
from app.schemas.messages import EmailRequest, SmsRequest
from app.services.messaging_service import MessagingService

router = APIRouter()


def _batch_response(result, channel: str) -> dict:
    return {
        "success": result.status != MessageStatus.FAILED,
        "status": result.status.value,
        "message": f"{channel} sent to {result.successful} of {result.total} recipients",
        "results": {
            "successful": result.successful,
            "failed": result.failed,
            "total": result.total,
            "message_ids": result.message_ids,
            "failures": [o.model_dump() for o in result.outcomes if not o.success],
        },
        "log_id": result.log_id,
    }


def _log_owner(user: User):
    # admins see every sender's batches
    return None if user.role == Role.ADMIN.value else user.id


def _log_dict(entry) -> dict:
    data = {
        "id": entry.id,
        "message": entry.message,
        "recipients": entry.recipients,
        "status": entry.status,
        "message_ids": entry.message_ids,
        "error": entry.error,
        "user_id": entry.user_id,
        "created_at": entry.created_at,
    }
    if isinstance(entry, EmailLog):
        data["subject"] = entry.subject
    return data


@router.post("/sms")
async def send_sms(
    body: SmsRequest,
    db: Session = Depends(get_db),
    sender=Depends(get_sms_sender),
    current_user: User = Depends(require_staff)
):
    try:
        result = await MessagingService.send_sms(db, current_user, body.message.strip(), body.recipients, sender)
    except InvalidRecipientError as e:
        raise HTTPException(status_code=400, detail=f"Invalid phone numbers: {', '.join(e.recipients)}")
    return _batch_response(result, "SMS")


@router.post("/email")
async def send_email(
    body: EmailRequest,
    db: Session = Depends(get_db),
    sender=Depends(get_email_sender),
    current_user: User = Depends(require_staff)
):
    try:
        result = await MessagingService.send_email(db, current_user, body.subject.strip(), body.message, body.recipients, sender)
    except InvalidRecipientError as e:
        raise HTTPException(status_code=400, detail=f"Invalid email addresses: {', '.join(e.recipients)}")
    return _batch_response(result, "Email")


@router.get("/logs/sms")
def sms_logs(
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    items, total = MessagingService.list_logs(db, SmsLog, limit, offset, _log_owner(current_user))
    return {"items": [_log_dict(i) for i in items], "total": total}


@router.get("/logs/email")
def email_logs(
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    items, total = MessagingService.list_logs(db, EmailLog, limit, offset, _log_owner(current_user))
    return {"items": [_log_dict(i) for i in items], "total": total}
