from datetime import datetime, timedelta, timezone

import pytest

from app.models.form import SignUpForm
from app.models.form_submission import FormSubmission
from conftest import PORTAL_KEY

URL = "/api/forms/submissions/webhook"
HEADERS = {"X-API-Key": PORTAL_KEY}


@pytest.fixture
def open_form(db):
    form = SignUpForm(id="form-1", title="Elders Lunch", is_active=True, category="HEALTH")
    db.add(form)
    db.commit()
    return form


def body(**overrides):
    data = {
        "formId": "form-1",
        "submitter": {"name": "Jane Doe", "email": "jane@example.com"},
        "responses": {"meal": "Fish"},
        "submittedAt": "2024-03-01T12:00:00Z",
    }
    data.update(overrides)
    return data


def test_rejects_missing_or_wrong_key(client, open_form):
    assert client.post(URL, json=body()).status_code == 401
    response = client.post(URL, json=body(), headers={"X-API-Key": "wrong"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized - Invalid API key"}


def test_unconfigured_key_never_authorizes(client, open_form, portal_config):
    portal_config.api_key = ""
    response = client.post(URL, json=body(), headers={"X-API-Key": ""})
    assert response.status_code == 401


def test_stores_submission(client, db, open_form):
    response = client.post(URL, json=body(), headers=HEADERS)

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["duplicate"] is False
    stored = db.query(FormSubmission).one()
    assert stored.id == data["submissionId"]
    assert stored.responses == {"meal": "Fish"}


def test_redelivery_is_not_stored_twice(client, db, open_form):
    first = client.post(URL, json=body(), headers=HEADERS).json()
    second = client.post(URL, json=body(), headers=HEADERS).json()

    assert second["duplicate"] is True
    assert second["submissionId"] == first["submissionId"]
    assert db.query(FormSubmission).count() == 1


def test_missing_responses(client, open_form):
    data = body()
    del data["responses"]

    response = client.post(URL, json=data, headers=HEADERS)

    assert response.status_code == 400
    assert response.json() == {"error": "responses object is required"}


def test_empty_responses_accepted(client, open_form):
    response = client.post(URL, json=body(responses={}), headers=HEADERS)
    assert response.status_code == 201


def test_invalid_json(client, open_form):
    response = client.post(URL, content=b"{not json", headers={**HEADERS, "Content-Type": "application/json"})
    assert response.status_code == 400


def test_unknown_form(client):
    response = client.post(URL, json=body(formId="nope"), headers=HEADERS)
    assert response.status_code == 404
    assert response.json() == {"error": "Form not found"}


def test_closed_form(client, db, open_form):
    open_form.deadline = datetime.now(timezone.utc) - timedelta(days=1)
    db.commit()

    response = client.post(URL, json=body(), headers=HEADERS)

    assert response.status_code == 400
    assert response.json() == {"error": "Form deadline has passed"}


def test_health_check(client):
    response = client.get(URL)
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
