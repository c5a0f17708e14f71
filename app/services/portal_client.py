import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel

from app.core.config import PortalConfig
from app.core.exceptions import PortalSyncError
from app.services.field_schema import to_portal_field

logger = logging.getLogger(__name__)

_URL_HOST = re.compile(r"^https?://[^/]+")

FORMS_PATH = "/api/signup-forms"
BULLETIN_PATH = "/api/sync/bulletin"
POSTER_PATH = "/api/sync/poster"

# Local attribute name -> portal payload key
_CHANGE_KEYS = {
    "title": "title",
    "description": "description",
    "deadline": "deadline",
    "max_entries": "maxEntries",
    "is_active": "isActive",
    "category": "category",
}


class SyncResult(BaseModel):
    success: bool
    remote_id: Optional[str] = None
    error: Optional[str] = None


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if message:
            return str(message)
    return f"Portal returned {response.status_code}"


class PortalClient:
    """HTTP client for the community portal's sign-up form API."""

    def __init__(self, config: PortalConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def _headers(self, json_body: bool = True) -> Dict[str, str]:
        headers = {"X-API-Key": self.config.api_key, "X-Source": self.config.source}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _not_configured(self) -> SyncResult:
        logger.warning("PORTAL_API_KEY not configured, skipping portal sync")
        return SyncResult(success=False, error="Portal API key not configured")

    def _send(self, method: str, path: str, payload: Optional[dict] = None) -> requests.Response:
        url = self.config.url(path)
        response = self.session.request(
            method,
            url,
            json=payload,
            headers=self._headers(json_body=payload is not None),
            timeout=self.config.timeout_seconds,
        )
        logger.info("Portal %s %s -> %s", method, url, response.status_code)
        return response

    @staticmethod
    def serialize_form(form, category: Optional[str] = None, department: Optional[str] = None) -> Dict[str, Any]:
        return {
            "formId": form.id,
            "title": form.title,
            "description": form.description,
            "deadline": _isoformat(form.deadline),
            "maxEntries": form.max_entries,
            "isActive": form.is_active,
            "category": category or form.category or "PROGRAM_EVENTS",
            "createdBy": department or "Band Office",
            "fields": [to_portal_field(f) for f in sorted(form.fields, key=lambda f: f.order)],
        }

    @staticmethod
    def serialize_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
        payload = {}
        for key, portal_key in _CHANGE_KEYS.items():
            if key in changes:
                value = changes[key]
                payload[portal_key] = _isoformat(value) if isinstance(value, datetime) else value
        if "fields" in changes and changes["fields"] is not None:
            payload["fields"] = [to_portal_field(f) for f in changes["fields"]]
        return payload

    def publish(self, form, category: Optional[str] = None, department: Optional[str] = None) -> SyncResult:
        if not self.config.is_configured:
            return self._not_configured()
        try:
            response = self._send("POST", FORMS_PATH, self.serialize_form(form, category, department))
            if not response.ok:
                raise PortalSyncError(_error_message(response), response.status_code)
            data = response.json() if response.content else {}
            remote_id = data.get("portalFormId") if isinstance(data, dict) else None
            # the portal keys forms it does not assign an id to by our local id
            return SyncResult(success=True, remote_id=remote_id or form.id)
        except (requests.RequestException, ValueError, PortalSyncError) as e:
            logger.error("Portal sync error for form %s: %s", form.id, e)
            return SyncResult(success=False, error=str(e))

    def update(self, remote_id: str, changes: Dict[str, Any]) -> SyncResult:
        if not self.config.is_configured:
            return self._not_configured()
        try:
            response = self._send("PATCH", f"{FORMS_PATH}/{remote_id}", self.serialize_changes(changes))
            if not response.ok:
                raise PortalSyncError(_error_message(response), response.status_code)
            return SyncResult(success=True, remote_id=remote_id)
        except (requests.RequestException, PortalSyncError) as e:
            logger.error("Portal update error for %s: %s", remote_id, e)
            return SyncResult(success=False, error=str(e))

    def retract(self, remote_id: str) -> SyncResult:
        if not self.config.is_configured:
            return self._not_configured()
        try:
            response = self._send("DELETE", f"{FORMS_PATH}/{remote_id}")
            # already gone on the portal side
            if not response.ok and response.status_code != 404:
                raise PortalSyncError(_error_message(response), response.status_code)
            return SyncResult(success=True, remote_id=remote_id)
        except (requests.RequestException, PortalSyncError) as e:
            logger.error("Portal delete error for %s: %s", remote_id, e)
            return SyncResult(success=False, error=str(e))

    def list_submissions(self, form_id: Optional[str] = None, since: Optional[str] = None) -> List[Dict[str, Any]]:
        """Fetch submissions from the portal. Raises PortalSyncError on any failure."""
        if not self.config.is_configured:
            raise PortalSyncError("Portal API key not configured")

        params = {}
        if form_id:
            params["formId"] = form_id
        if since:
            params["since"] = since

        url = self.config.url(f"{FORMS_PATH}/submissions")
        try:
            response = self.session.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            raise PortalSyncError(f"Portal unreachable: {e}")

        logger.info("Portal GET %s -> %s", url, response.status_code)
        if not response.ok:
            raise PortalSyncError(f"Portal returned {response.status_code}: {response.text}", response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise PortalSyncError("Portal returned an invalid JSON body")

        if not isinstance(data, dict) or not data.get("success"):
            return []
        return (data.get("data") or {}).get("submissions") or []

    @staticmethod
    def poster_path(poster_url: str) -> str:
        """The portal stores posters by host-relative path."""
        return _URL_HOST.sub("", poster_url)

    def poster_url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        return self.config.url(path)

    def push_bulletin(self, bulletin) -> SyncResult:
        if not self.config.is_configured:
            return self._not_configured()
        payload = {
            "sourceId": bulletin.id,
            "title": bulletin.title,
            "subject": bulletin.subject,
            "poster_url": self.poster_path(bulletin.poster_url or ""),
            "category": bulletin.category,
            "created": _isoformat(bulletin.created_at),
        }
        try:
            response = self._send("POST", BULLETIN_PATH, payload)
            if not response.ok:
                raise PortalSyncError(_error_message(response), response.status_code)
            return SyncResult(success=True, remote_id=bulletin.id)
        except (requests.RequestException, PortalSyncError) as e:
            logger.error("Portal bulletin sync error for %s: %s", bulletin.id, e)
            return SyncResult(success=False, error=str(e))

    def upload_poster(self, source_id: str, filename: str, content: bytes, content_type: str) -> str:
        """Upload a poster image and return its absolute URL. Raises PortalSyncError on failure."""
        if not self.config.is_configured:
            raise PortalSyncError("Portal API key not configured")

        url = self.config.url(POSTER_PATH)
        try:
            response = self.session.post(
                url,
                data={"sourceId": source_id, "filename": filename},
                files={"file": (filename, content, content_type)},
                headers=self._headers(json_body=False),
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            raise PortalSyncError(f"Portal unreachable: {e}")

        logger.info("Portal POST %s -> %s", url, response.status_code)
        if not response.ok:
            raise PortalSyncError(_error_message(response), response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise PortalSyncError("Portal returned an invalid JSON body")
        poster = (data.get("data") or {}).get("poster_url") if isinstance(data, dict) else None
        if not poster:
            raise PortalSyncError("Portal did not return a poster URL")
        return self.poster_url(poster)

    def check_connection(self) -> bool:
        try:
            response = self.session.get(
                self.config.url("/api/health"),
                headers=self._headers(json_body=False),
                timeout=self.config.timeout_seconds,
            )
            return response.ok
        except requests.RequestException:
            return False
