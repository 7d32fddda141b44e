"""
Error taxonomy shared by the services and the HTTP layer.
"""


class AgendaError(Exception):
    """Base class for all application-level errors."""

    status_code = 500

    def __init__(self, message: str = "", **context):
        super().__init__(message)
        self.message = message
        self.context = context


class InvalidInputError(AgendaError):
    """Raised for missing or malformed request fields and non-positive durations."""

    status_code = 400


class NotFoundError(AgendaError):
    """Raised when a professional, service or booking reference does not resolve."""

    status_code = 404


class SlotUnavailableError(AgendaError):
    """Raised when a requested slot is taken or no longer offered."""

    status_code = 409


class InternalError(AgendaError):
    """Raised when a collaborator fails unexpectedly."""

    status_code = 500


class DataStoreError(InternalError):
    """Raised when the database cannot be read or written."""
