from fastapi import status


class AppException(Exception):
    """Base for errors a service raises on purpose.

    Handlers turn these into the standard error envelope using
    ``status_code`` and ``message``.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None, data: dict | None = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)


class NotFound(AppException):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class Conflict(AppException):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class InvalidIdentifier(AppException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid identifier"


class InvalidQuery(AppException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid query parameters"
