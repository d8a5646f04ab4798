"""
Browser-session related exceptions.
"""

from .base import StorefrontException


class SessionException(StorefrontException):
    """Base exception for browser-session errors."""
    pass


class MissingSessionException(SessionException):
    """Raised when a request does not identify its browser session."""

    def __init__(self, header: str):
        super().__init__(
            f"Missing or empty {header} header",
            details={'header': header}
        )
        self.header = header


class NotSignedInException(SessionException):
    """Raised when a guest session asks for data that belongs to a signed-in user."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Session {session_id} is not signed in",
            details={'session_id': session_id}
        )
        self.session_id = session_id
