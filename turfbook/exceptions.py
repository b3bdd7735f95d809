"""
Exceptions raised by the booking and game workflows.

Every workflow failure is one of the four types below so the API layer can
map them to responses in one place.
"""


class TurfbookError(Exception):
    """Base class for all workflow errors"""

    def __init__(self, message):
        self.message = message
        super().__init__(message)


class ValidationError(TurfbookError):
    """Malformed or constraint-violating input; nothing was written"""

    def __init__(self, message, field=None):
        self.field = field
        super().__init__(message)


class ConflictError(TurfbookError):
    """Overlap, capacity or terminal-state race; re-fetch before retrying"""
    pass


class AuthorizationError(TurfbookError):
    """The actor lacks the owner or organizer relationship required"""
    pass


class NotFoundError(TurfbookError):
    """Referenced record is missing or retired"""

    def __init__(self, model_name, record_id):
        self.model_name = model_name
        self.record_id = record_id
        super().__init__(f"{model_name} {record_id} not found")
