class ClubError(Exception):
    """Base for errors that map onto an HTTP status and a message."""
    status_code = 500

    def __init__(self, message: str, status_code: int = None, payload: dict = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}

    def to_dict(self) -> dict:
        body = {'error': self.message}
        body.update(self.payload)
        return body


class ValidationFailed(ClubError):
    status_code = 400


class NotFound(ClubError):
    status_code = 404


class Conflict(ClubError):
    status_code = 409


class Unauthorized(ClubError):
    status_code = 401


class Forbidden(ClubError):
    status_code = 403


class BudgetExceeded(ValidationFailed):
    """Raised when a sale would take a team's remaining budget below zero."""
