import asyncio
import logging
from typing import Callable, List, Optional, Sequence

import phonenumbers
from phonenumbers import NumberParseException
from pydantic import BaseModel, EmailStr, TypeAdapter, ValidationError
from sqlalchemy import desc
from sqlalchemy.orm import Session
from twilio.rest import Client

from app.core.config import SmsConfig, SmtpConfig
from app.core.enums import MessageStatus
from app.core.exceptions import InvalidRecipientError
from app.models.message_log import EmailLog, SmsLog
from app.models.user import User
from app.utils.email import send_email

logger = logging.getLogger(__name__)

DEFAULT_REGION = "CA"
_EMAIL_ADAPTER = TypeAdapter(EmailStr)


class RecipientOutcome(BaseModel):
    recipient: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class BatchResult(BaseModel):
    status: MessageStatus
    successful: int
    failed: int
    total: int
    message_ids: List[str]
    outcomes: List[RecipientOutcome]
    log_id: Optional[str] = None

    @property
    def error_summary(self) -> Optional[str]:
        failures = [o for o in self.outcomes if not o.success]
        if not failures:
            return None
        return "Failed: " + "; ".join(f"{o.recipient}: {o.error}" for o in failures)


def batch_status(successful: int, failed: int) -> MessageStatus:
    if failed == 0:
        return MessageStatus.SENT
    if successful == 0:
        return MessageStatus.FAILED
    return MessageStatus.PARTIAL


def normalize_phone(number: str, region: str = DEFAULT_REGION) -> str:
    try:
        parsed = phonenumbers.parse(number, region)
    except NumberParseException:
        raise ValueError("Invalid phone format")
    if not phonenumbers.is_possible_number(parsed):
        raise ValueError("Invalid length for country")
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def is_valid_email(address: str) -> bool:
    try:
        _EMAIL_ADAPTER.validate_python(address)
    except ValidationError:
        return False
    return True


class TwilioSmsSender:
    """Sends single SMS messages through the Twilio client."""

    def __init__(self, config: SmsConfig, client: Optional[Client] = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            if not (self.config.account_sid and self.config.auth_token and self.config.from_number):
                raise RuntimeError("Twilio is not configured")
            self._client = Client(self.config.account_sid, self.config.auth_token)
        return self._client

    def __call__(self, to_number: str, body: str) -> str:
        message = self.client.messages.create(body=body, from_=self.config.from_number, to=to_number)
        return message.sid


class SmtpEmailSender:
    def __init__(self, config: SmtpConfig):
        self.config = config

    def __call__(self, to_email: str, subject: str, body: str) -> str:
        return send_email(self.config, to_email, subject, body)


class MessagingService:
    @staticmethod
    async def _fan_out(recipients: Sequence[str], send: Callable[[str], str]) -> List[RecipientOutcome]:
        """Run one blocking send per recipient; every outcome is collected."""
        loop = asyncio.get_running_loop()
        tasks = [loop.run_in_executor(None, send, r) for r in recipients]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes = []
        for recipient, result in zip(recipients, results):
            if isinstance(result, Exception):
                logger.error("Failed to send to %s: %s", recipient, result)
                outcomes.append(RecipientOutcome(recipient=recipient, success=False, error=str(result) or type(result).__name__))
            else:
                outcomes.append(RecipientOutcome(recipient=recipient, success=True, message_id=result))
        return outcomes

    @staticmethod
    def _summarize(outcomes: List[RecipientOutcome]) -> BatchResult:
        successful = sum(1 for o in outcomes if o.success)
        failed = len(outcomes) - successful
        return BatchResult(
            status=batch_status(successful, failed),
            successful=successful,
            failed=failed,
            total=len(outcomes),
            message_ids=[o.message_id for o in outcomes if o.success and o.message_id],
            outcomes=outcomes,
        )

    @staticmethod
    def _write_log(db: Session, entry) -> Optional[str]:
        try:
            db.add(entry)
            db.commit()
            return entry.id
        except Exception as e:
            # the messages already went out; a missing log row must not fail the request
            logger.error("Failed to write message log: %s", e)
            db.rollback()
            return None

    @staticmethod
    async def send_sms(db: Session, user: User, message: str, recipients: List[str], sender: Callable[[str, str], str]) -> BatchResult:
        normalized, invalid = [], []
        for number in recipients:
            try:
                normalized.append(normalize_phone(number))
            except ValueError:
                invalid.append(number)
        if invalid:
            raise InvalidRecipientError(invalid)

        outcomes = await MessagingService._fan_out(normalized, lambda to: sender(to, message))
        result = MessagingService._summarize(outcomes)
        result.log_id = MessagingService._write_log(db, SmsLog(
            message=message,
            recipients=normalized,
            status=result.status.value,
            message_ids=result.message_ids,
            error=result.error_summary,
            user_id=user.id,
        ))
        return result

    @staticmethod
    async def send_email(db: Session, user: User, subject: str, message: str, recipients: List[str],
                         sender: Callable[[str, str, str], str]) -> BatchResult:
        cleaned = [r.strip() for r in recipients]
        invalid = [r for r in cleaned if not is_valid_email(r)]
        if invalid:
            raise InvalidRecipientError(invalid)

        outcomes = await MessagingService._fan_out(cleaned, lambda to: sender(to, subject, message))
        result = MessagingService._summarize(outcomes)
        result.log_id = MessagingService._write_log(db, EmailLog(
            subject=subject,
            message=message,
            recipients=cleaned,
            status=result.status.value,
            message_ids=result.message_ids,
            error=result.error_summary,
            user_id=user.id,
        ))
        return result

    @staticmethod
    def list_logs(db: Session, model, limit: int = 50, offset: int = 0, user_id: Optional[str] = None):
        """Newest first. Restricted to one sender when ``user_id`` is given."""
        query = db.query(model)
        if user_id:
            query = query.filter(model.user_id == user_id)
        total = query.count()
        items = query.order_by(desc(model.created_at)).offset(offset).limit(limit).all()
        return items, total
