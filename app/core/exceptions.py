class BandOfficeError(Exception):
    """Base class for errors raised by the service layer."""


class FormNotFoundError(BandOfficeError):
    def __init__(self, form_id: str):
        self.form_id = form_id
        super().__init__("Form not found")


class SubmissionNotFoundError(BandOfficeError):
    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        super().__init__("Submission not found")


class FormClosedError(BandOfficeError):
    """The form exists but is not accepting submissions."""

    INACTIVE = "Form is no longer accepting submissions"
    DEADLINE_PASSED = "Form deadline has passed"
    CAPACITY_REACHED = "Form has reached maximum entries"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class PortalSyncError(BandOfficeError):
    """The portal was unreachable or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)


class InvalidRecipientError(BandOfficeError):
    def __init__(self, recipients):
        self.recipients = list(recipients)
        super().__init__(f"Invalid recipients: {', '.join(self.recipients)}")


class BulletinNotFoundError(BandOfficeError):
    def __init__(self, bulletin_id: str):
        self.bulletin_id = bulletin_id
        super().__init__("Bulletin not found")


class UserNotFoundError(BandOfficeError):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("User not found")


class DuplicateEmailError(BandOfficeError):
    def __init__(self, email: str):
        self.email = email
        super().__init__("A user with this email already exists")
