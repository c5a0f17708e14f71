from .base import Base
from .user import User
from .form import SignUpForm, FormField
from .form_submission import FormSubmission
from .message_log import SmsLog, EmailLog
from .activity_log import ActivityLog
from .bulletin import Bulletin

__all__ = [
    'Base', 'User', 'SignUpForm', 'FormField', 'FormSubmission',
    'SmsLog', 'EmailLog', 'ActivityLog', 'Bulletin'
]
