from enum import Enum


class Department(str, Enum):
    UTILITIES = "UTILITIES"
    FINANCE = "FINANCE"
    HOUSING = "HOUSING"


class Role(str, Enum):
    STAFF = "STAFF"
    STAFF_ADMIN = "STAFF_ADMIN"
    ADMIN = "ADMIN"
    CHIEF_COUNCIL = "CHIEF_COUNCIL"


# Roles allowed to create, edit and delete forms and send messages
STAFF_ROLES = (Role.STAFF, Role.STAFF_ADMIN, Role.ADMIN)


class FieldType(str, Enum):
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    SELECT = "SELECT"
    MULTISELECT = "MULTISELECT"
    CHECKBOX = "CHECKBOX"
    DATE = "DATE"
    NUMBER = "NUMBER"
    EMAIL = "EMAIL"
    PHONE = "PHONE"


OPTION_FIELD_TYPES = (FieldType.SELECT, FieldType.MULTISELECT)


class BulletinCategory(str, Enum):
    CHIEFNCOUNCIL = "CHIEFNCOUNCIL"
    HEALTH = "HEALTH"
    EDUCATION = "EDUCATION"
    RECREATION = "RECREATION"
    EMPLOYMENT = "EMPLOYMENT"
    PROGRAM_EVENTS = "PROGRAM_EVENTS"
    ANNOUNCEMENTS = "ANNOUNCEMENTS"


class MessageStatus(str, Enum):
    SENT = "sent"
    PARTIAL = "partial"
    FAILED = "failed"
