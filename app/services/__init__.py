from .auth_service import AuthService
from .form_service import FormService
from .submission_service import SubmissionService
from .sync_service import SubmissionPuller
from .messaging_service import MessagingService
from .activity_service import ActivityService
from .bulletin_service import BulletinService
from .user_service import UserService

__all__ = ["AuthService", "FormService", "SubmissionService", "SubmissionPuller", "MessagingService", "ActivityService",
           "BulletinService", "UserService"]
