from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from app.core.config import PortalConfig
from app.core.exceptions import PortalSyncError
from app.models.form import FormField, SignUpForm
from app.services.portal_client import PortalClient


def make_response(status_code=200, json_data=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.content = b"{}" if json_data is not None else b""
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def portal(session):
    config = PortalConfig(portal_base_url="https://portal.test/", api_key="secret")
    return PortalClient(config, session=session)


@pytest.fixture
def form():
    f = SignUpForm(
        id="local-1",
        title="Dinner",
        description=None,
        deadline=datetime(2030, 1, 1, tzinfo=timezone.utc),
        max_entries=50,
        is_active=True,
        category="PROGRAM_EVENTS",
    )
    f.fields = [
        FormField(id="f2", field_id=None, label="Notes", field_type="TEXTAREA", required=False, order=1),
        FormField(id="f1", field_id="email", label="Email", field_type="EMAIL", required=True, order=0),
    ]
    return f


def test_publish_sends_semantic_fields_and_returns_remote_id(portal, session, form):
    session.request.return_value = make_response(201, {"portalFormId": "p-42"})

    result = portal.publish(form, "HEALTH", "FINANCE")

    assert result.success
    assert result.remote_id == "p-42"
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert (method, url) == ("POST", "https://portal.test/api/signup-forms")
    assert kwargs["headers"]["X-API-Key"] == "secret"
    payload = kwargs["json"]
    assert payload["category"] == "HEALTH"
    assert payload["createdBy"] == "FINANCE"
    assert payload["deadline"] == "2030-01-01T00:00:00+00:00"
    assert [f["fieldId"] for f in payload["fields"]] == ["email", "f2"]


def test_publish_failure_is_reported_not_raised(portal, session, form):
    session.request.return_value = make_response(500, {"message": "database down"})

    result = portal.publish(form)

    assert not result.success
    assert result.error == "database down"
    assert result.remote_id is None


def test_publish_transport_error(portal, session, form):
    session.request.side_effect = requests.ConnectionError("refused")

    result = portal.publish(form)

    assert not result.success
    assert "refused" in result.error


def test_missing_api_key_skips_network(session, form):
    portal = PortalClient(PortalConfig(api_key=""), session=session)

    result = portal.publish(form)

    assert not result.success
    assert result.error == "Portal API key not configured"
    session.request.assert_not_called()


def test_update_sends_only_changed_keys(portal, session):
    session.request.return_value = make_response(200, {})

    result = portal.update("p-42", {"title": "Supper", "is_active": False})

    assert result.success
    method, url = session.request.call_args.args
    assert (method, url) == ("PATCH", "https://portal.test/api/signup-forms/p-42")
    assert session.request.call_args.kwargs["json"] == {"title": "Supper", "isActive": False}


def test_update_error_without_body_uses_status(portal, session):
    session.request.return_value = make_response(503)

    result = portal.update("p-42", {"title": "Supper"})

    assert not result.success
    assert result.error == "Portal returned 503"


def test_retract_treats_404_as_success(portal, session):
    session.request.return_value = make_response(404, {"error": "gone"})
    assert portal.retract("p-42").success

    session.request.return_value = make_response(500, {"error": "boom"})
    result = portal.retract("p-42")
    assert not result.success
    assert result.error == "boom"


def test_list_submissions_passes_filters(portal, session):
    submissions = [{"formId": "p-42", "name": "Jane Doe"}]
    session.get.return_value = make_response(200, {"success": True, "data": {"submissions": submissions}})

    assert portal.list_submissions(form_id="local-1", since="2024-01-01T00:00:00+00:00") == submissions
    kwargs = session.get.call_args.kwargs
    assert kwargs["params"] == {"formId": "local-1", "since": "2024-01-01T00:00:00+00:00"}


def test_list_submissions_empty_body(portal, session):
    session.get.return_value = make_response(200, {"success": False})
    assert portal.list_submissions() == []


def test_list_submissions_failure_raises(portal, session):
    session.get.return_value = make_response(502, text="bad gateway")
    with pytest.raises(PortalSyncError) as exc:
        portal.list_submissions()
    assert exc.value.status_code == 502

    session.get.side_effect = requests.Timeout("slow")
    with pytest.raises(PortalSyncError):
        portal.list_submissions()


def test_check_connection(portal, session):
    session.get.return_value = make_response(200, {})
    assert portal.check_connection() is True

    session.get.side_effect = requests.ConnectionError()
    assert portal.check_connection() is False


def test_publish_without_portal_id_falls_back_to_local_id(portal, session, form):
    session.request.return_value = make_response(201, {"success": True})

    result = portal.publish(form)

    assert result.success
    assert result.remote_id == "local-1"


def test_push_bulletin_sends_relative_poster_path(portal, session):
    session.request.return_value = make_response(200, {"success": True})
    bulletin = MagicMock(id="b-1", title="Water Advisory", subject="Boil water", category="ANNOUNCEMENTS",
                         poster_url="https://portal.test/bulletinboard/b-1.jpg",
                         created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))

    assert portal.push_bulletin(bulletin).success
    method, url = session.request.call_args.args
    payload = session.request.call_args.kwargs["json"]
    assert (method, url) == ("POST", "https://portal.test/api/sync/bulletin")
    assert payload["sourceId"] == "b-1"
    assert payload["poster_url"] == "/bulletinboard/b-1.jpg"


def test_upload_poster_returns_absolute_url(portal, session):
    session.post.return_value = make_response(200, {"success": True, "data": {"poster_url": "/bulletinboard/b-1.jpg"}})

    url = portal.upload_poster("b-1", "poster.jpg", b"data", "image/jpeg")

    assert url == "https://portal.test/bulletinboard/b-1.jpg"
    kwargs = session.post.call_args.kwargs
    assert kwargs["files"]["file"] == ("poster.jpg", b"data", "image/jpeg")
    assert "Content-Type" not in kwargs["headers"]


def test_upload_poster_failure_raises(portal, session):
    session.post.return_value = make_response(413, {"error": "too large"})
    with pytest.raises(PortalSyncError) as exc:
        portal.upload_poster("b-1", "poster.jpg", b"data", "image/jpeg")
    assert str(exc.value) == "too large"
