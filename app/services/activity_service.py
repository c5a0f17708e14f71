import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


class ActivityService:
    @staticmethod
    def _normalize_value(value: Any) -> Any:
        if value is None:
            return None
        if hasattr(value, "isoformat"):  # datetime
            return value.isoformat()
        if hasattr(value, "value") and not isinstance(value, (int, float, bool, str)):  # enum
            return value.value
        if not isinstance(value, (int, float, bool, str, list, dict)):
            return str(value)
        return value

    @staticmethod
    def log(
        db: Session,
        action: str,
        entity_type: str,
        entity_id: Optional[str] = None,
        user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        request=None,
    ):
        """
        Write an activity row. Failures are logged and swallowed so that
        audit problems never fail the request that triggered them.
        """
        try:
            entry = ActivityLog(
                user_id=user_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details=details or {},
                ip_address=request.client.host if request is not None and request.client else None,
                user_agent=request.headers.get("user-agent") if request is not None else None,
            )
            db.add(entry)
            db.commit()
        except Exception as e:
            logger.error("Activity log failed for %s %s: %s", action, entity_type, e)
            db.rollback()

    @staticmethod
    def calculate_changes(old_obj: Any, new_data: Dict[str, Any], exclude: list = None) -> Dict[str, Dict[str, Any]]:
        """
        Returns {field: {'from': old, 'to': new}} for every key of new_data
        whose value differs from the attribute on old_obj.
        """
        exclude = exclude or []
        changes = {}

        for key, new_val in new_data.items():
            if key in exclude or not hasattr(old_obj, key):
                continue
            old_val = ActivityService._normalize_value(getattr(old_obj, key))
            new_val = ActivityService._normalize_value(new_val)
            if old_val != new_val:
                changes[key] = {"from": old_val, "to": new_val}

        return changes
