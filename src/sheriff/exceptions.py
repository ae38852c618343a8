"""
Exception hierarchy for the Sheriff's Office service.

Store and security code raise these; the app factory registers one handler
that maps each class to its HTTP status and a client-safe JSON body.

    AuthenticationError   401
    AuthorizationError    403
    NotFoundError         404
    ConflictError         409
    ValidationError       400
    LoginThrottledError   429
"""

from typing import Optional


class SheriffError(Exception):
    """Base class for all service errors."""

    status_code: int = 500
    default_message: str = "Server-Fehler"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {"message": self.message}


class AuthenticationError(SheriffError):
    """Missing, unknown or expired session token."""

    status_code = 401
    default_message = "Session ungültig oder abgelaufen"


class AuthorizationError(SheriffError):
    """Valid session, insufficient rank. Never names the required rank."""

    status_code = 403
    default_message = "Keine Berechtigung"


class NotFoundError(SheriffError):
    """The referenced id does not exist."""

    status_code = 404
    default_message = "Eintrag nicht gefunden"


class ConflictError(SheriffError):
    """A unique key (username, case number, serial number) is already taken."""

    status_code = 409
    default_message = "Eintrag existiert bereits"


class ValidationError(SheriffError):
    """Malformed input; carries an itemized list of problems."""

    status_code = 400
    default_message = "Ungültige Eingabe"

    def __init__(self, message: Optional[str] = None, errors: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])

    def to_payload(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class LoginThrottledError(SheriffError):
    """Too many failed logins for one username."""

    status_code = 429
    default_message = "Zu viele Anmeldeversuche. Bitte später erneut versuchen."

    def __init__(self, retry_after: int, message: Optional[str] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after
