from datetime import datetime, timezone

import pytest

from app.core.exceptions import FormNotFoundError, PortalSyncError
from app.models.form import SignUpForm
from app.models.form_submission import FormSubmission
from app.services.sync_service import SubmissionPuller, resolve_local_form_id

LOCAL = {"local-1": "local-1", "local-2": "local-2"}
PORTAL = {"portal-9": "local-2"}


def resolve(item_form_id, caller_form_id=None):
    return resolve_local_form_id(item_form_id, caller_form_id, PORTAL.get, LOCAL.get)


def test_resolve_prefers_caller_form():
    assert resolve("portal-9", caller_form_id="local-1") == "local-1"
    assert resolve(None, caller_form_id="local-1") == "local-1"


def test_resolve_portal_id_before_local_id():
    assert resolve("portal-9") == "local-2"
    assert resolve("local-1") == "local-1"


def test_resolve_unknown():
    assert resolve("nope") is None
    assert resolve(None) is None


def jane(form_id="F", **extra):
    item = {"formId": form_id, "name": "Jane Doe", "email": "j@x.com", "submittedAt": "2024-01-01T00:00:00Z"}
    item.update(extra)
    return item


@pytest.fixture
def local_form(db):
    form = SignUpForm(id="F", title="Hunting Draw", is_active=True, category="ANNOUNCEMENTS")
    db.add(form)
    db.commit()
    return form


def test_pull_twice_is_idempotent(db, portal, local_form):
    portal.list_submissions.return_value = [jane()]
    puller = SubmissionPuller(db, portal)

    first = puller.pull()
    second = puller.pull()

    assert (first.synced, first.skipped, first.total) == (1, 0, 1)
    assert (second.synced, second.skipped, second.total) == (0, 1, 1)
    assert db.query(FormSubmission).count() == 1


def test_pull_maps_portal_form_id(db, portal, local_form):
    local_form.portal_form_id = "remote-77"
    db.commit()
    portal.list_submissions.return_value = [jane(form_id="remote-77", memberId="15")]

    result = SubmissionPuller(db, portal).pull()

    assert result.synced == 1
    stored = db.query(FormSubmission).one()
    assert stored.form_id == "F"
    assert stored.member_id == 15


def test_pull_skips_unresolved_and_malformed(db, portal, local_form):
    portal.list_submissions.return_value = [
        jane(form_id="elsewhere"),
        jane(name=""),
        jane(submittedAt="not a date"),
        "garbage",
        None,
        jane(name={"first": "Jane"}),
        jane(email=["j@x.com"]),
        jane(),
    ]

    result = SubmissionPuller(db, portal).pull()

    assert (result.synced, result.skipped, result.total) == (1, 7, 8)
    assert db.query(FormSubmission).count() == 1


def test_pull_for_one_form_passes_filters(db, portal, local_form):
    portal.list_submissions.return_value = [jane(form_id="whatever")]
    since = datetime(2024, 1, 1, tzinfo=timezone.utc)

    result = SubmissionPuller(db, portal).pull(form_id="F", since=since)

    assert result.synced == 1
    portal.list_submissions.assert_called_once_with(form_id="F", since="2024-01-01T00:00:00+00:00")


def test_pull_unknown_local_form(db, portal):
    with pytest.raises(FormNotFoundError):
        SubmissionPuller(db, portal).pull(form_id="missing")
    portal.list_submissions.assert_not_called()


def test_pull_portal_failure_propagates(db, portal, local_form):
    portal.list_submissions.side_effect = PortalSyncError("Portal returned 500", status_code=500)

    with pytest.raises(PortalSyncError):
        SubmissionPuller(db, portal).pull()
    assert db.query(FormSubmission).count() == 0
