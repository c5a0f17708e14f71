import asyncio
from unittest.mock import MagicMock

import pytest

from app.core.dependencies import get_email_sender, get_sms_sender
from app.core.enums import MessageStatus
from app.core.exceptions import InvalidRecipientError
from app.main import app
from app.models.message_log import EmailLog, SmsLog
from app.core.config import SmsConfig
from app.services.messaging_service import (
    MessagingService,
    TwilioSmsSender,
    batch_status,
    is_valid_email,
    normalize_phone,
)


class FakeSms:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent = []

    def __call__(self, to_number, body):
        if to_number in self.failing:
            raise RuntimeError("Carrier rejected")
        self.sent.append((to_number, body))
        return f"SM{len(self.sent)}"


@pytest.mark.parametrize("successful,failed,expected", [
    (3, 0, MessageStatus.SENT),
    (2, 1, MessageStatus.PARTIAL),
    (0, 3, MessageStatus.FAILED),
])
def test_batch_status(successful, failed, expected):
    assert batch_status(successful, failed) == expected


def test_normalize_phone():
    assert normalize_phone("(604) 555-0100") == "+16045550100"
    assert normalize_phone("+1 604 555 0100") == "+16045550100"
    with pytest.raises(ValueError):
        normalize_phone("not a number")
    with pytest.raises(ValueError):
        normalize_phone("12")


def test_send_sms_partial_failure(db, staff_user):
    sender = FakeSms(failing={"+16045550101"})

    result = asyncio.run(MessagingService.send_sms(
        db, staff_user, "Band meeting tonight", ["604-555-0100", "604-555-0101"], sender
    ))

    assert result.status == MessageStatus.PARTIAL
    assert (result.successful, result.failed, result.total) == (1, 1, 2)
    assert result.message_ids == ["SM1"]
    log = db.query(SmsLog).one()
    assert log.status == "partial"
    assert log.recipients == ["+16045550100", "+16045550101"]
    assert "Carrier rejected" in log.error


def test_send_sms_rejects_invalid_numbers_before_sending(db, staff_user):
    sender = FakeSms()

    with pytest.raises(InvalidRecipientError) as exc:
        asyncio.run(MessagingService.send_sms(db, staff_user, "Hi", ["604-555-0100", "oops"], sender))

    assert exc.value.recipients == ["oops"]
    assert sender.sent == []
    assert db.query(SmsLog).count() == 0


def test_send_email_all_failed(db, staff_user):
    def sender(to_email, subject, body):
        raise RuntimeError("SMTP down")

    result = asyncio.run(MessagingService.send_email(
        db, staff_user, "Notice", "Office closed Friday", ["a@example.com"], sender
    ))

    assert result.status == MessageStatus.FAILED
    assert db.query(EmailLog).one().subject == "Notice"


@pytest.fixture
def sms_sender():
    sender = FakeSms()
    app.dependency_overrides[get_sms_sender] = lambda: sender
    yield sender
    app.dependency_overrides.pop(get_sms_sender, None)


def test_sms_endpoint(client, sms_sender):
    response = client.post("/api/messages/sms", json={"message": " Hello ", "recipients": ["6045550100"]})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "sent"
    assert data["results"]["message_ids"] == ["SM1"]
    assert sms_sender.sent == [("+16045550100", "Hello")]

    logs = client.get("/api/messages/logs/sms").json()
    assert logs["total"] == 1
    assert logs["items"][0]["id"] == data["log_id"]


def test_sms_endpoint_invalid_number(client, sms_sender):
    response = client.post("/api/messages/sms", json={"message": "Hello", "recipients": ["bogus"]})
    assert response.status_code == 400
    assert "bogus" in response.json()["detail"]


def test_email_endpoint_invalid_address(client):
    app.dependency_overrides[get_email_sender] = lambda: (lambda to, subject, body: "id")
    response = client.post("/api/messages/email", json={
        "subject": "Hi", "message": "Body", "recipients": ["not-an-email"],
    })
    assert response.status_code == 400


def test_messaging_is_staff_only(client, db, staff_user, sms_sender):
    staff_user.role = "CHIEF_COUNCIL"
    db.commit()
    response = client.post("/api/messages/sms", json={"message": "Hello", "recipients": ["6045550100"]})
    assert response.status_code == 403


@pytest.mark.parametrize("address,expected", [
    ("jane@example.com", True),
    ("a@b..com", False),
    ("x@@y.com", False),
    ("no-at-sign", False),
])
def test_is_valid_email(address, expected):
    assert is_valid_email(address) is expected


def test_send_email_rejects_malformed_domains(db, staff_user):
    sent = []

    with pytest.raises(InvalidRecipientError) as exc:
        asyncio.run(MessagingService.send_email(
            db, staff_user, "Notice", "Body", ["jane@example.com", "a@b..com", "x@@y.com"],
            lambda to, subject, body: sent.append(to),
        ))

    assert exc.value.recipients == ["a@b..com", "x@@y.com"]
    assert sent == []


def test_twilio_sender_uses_client():
    client = MagicMock()
    client.messages.create.return_value = MagicMock(sid="SM123")
    config = SmsConfig(account_sid="AC1", auth_token="tok", from_number="+15550001111")

    assert TwilioSmsSender(config, client=client)("+16045550100", "Hello") == "SM123"
    client.messages.create.assert_called_once_with(body="Hello", from_="+15550001111", to="+16045550100")


def test_twilio_sender_requires_configuration():
    with pytest.raises(RuntimeError):
        TwilioSmsSender(SmsConfig())("+16045550100", "Hello")


def test_logs_are_scoped_to_sender_unless_admin(client, db, staff_user):
    db.add(SmsLog(message="mine", recipients=[], status="sent", message_ids=[], user_id=staff_user.id))
    db.add(SmsLog(message="theirs", recipients=[], status="sent", message_ids=[], user_id=None))
    db.commit()

    own = client.get("/api/messages/logs/sms").json()
    assert [i["message"] for i in own["items"]] == ["mine"]
    assert own["total"] == 1

    staff_user.role = "ADMIN"
    db.commit()
    assert client.get("/api/messages/logs/sms").json()["total"] == 2
