"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``main.py`` renders them into the standard
``{success, data, error}`` envelope with the matching status code.
"""


class TaskboardError(Exception):
    """Base exception. Unexpected failures map to 500."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskboardError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid input"


class InvalidAssignee(ValidationError):
    """Assignee does not resolve to a user of the acting organization."""

    default_message = "Assignee must be a member of this organization"


class Unauthenticated(TaskboardError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Not authenticated"


class Forbidden(TaskboardError):
    """Role, ownership or organization check failed."""

    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(TaskboardError):
    """Resource absent, or not visible from the caller's organization."""

    status_code = 404
    default_message = "Not found"


class Conflict(TaskboardError):
    """Uniqueness violation, e.g. duplicate registration."""

    status_code = 409
    default_message = "Conflict"
