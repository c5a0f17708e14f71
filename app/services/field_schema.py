"""
Translation between local form fields and the portal's field descriptors.

Fields are matched across systems by a semantic identifier ("email",
"full_name", ...) rather than by either side's row id. When staff do not
set one explicitly it is derived from the label, and re-derived whenever
the label changes.
"""
import re
from typing import Any, Dict, Mapping, Optional

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9_]")

# Fields the portal auto-fills from the member profile
CONTACT_FIELD_IDS = ("first_name", "last_name", "full_name", "email", "phone")


def derive_field_id(label: Optional[str]) -> str:
    if not label:
        return ""
    lowered = label.lower()
    return _DISALLOWED.sub("", _WHITESPACE.sub("_", lowered))


def resolve_field_id(label: Optional[str], explicit: Optional[str] = None) -> Optional[str]:
    """Explicit identifier wins; otherwise derive from the label. Empty means none."""
    if explicit:
        return explicit
    return derive_field_id(label) or None


def response_key(field) -> str:
    return field.field_id or field.id


def lookup_response(field, responses: Mapping[str, Any]) -> Any:
    if not responses:
        return None
    if field.field_id and field.field_id in responses:
        return responses[field.field_id]
    return responses.get(field.id)


def to_portal_field(field) -> Dict[str, Any]:
    return {
        "fieldId": response_key(field),
        "label": field.label,
        "fieldType": field.field_type,
        "required": bool(field.required),
        "order": field.order,
        "placeholder": field.placeholder,
        "options": field.options or None,
    }
