"""
Domain exceptions raised by the services layer.
Rendered as JSON error responses by the handlers registered in sitecms.main.
"""
from fastapi import status


class CMSError(Exception):
    """Base class for errors reported to API clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal server error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CMSError):
    """Missing or invalid field, malformed identifier or unusable image entry."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad request"


class PayloadTooLargeError(ValidationError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    error = "File too large"


class NotFoundError(CMSError):
    """Well-formed identifier that matches no record."""

    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"


class DependencyError(CMSError):
    """The database or the blob store failed for infrastructural reasons."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Dependency failure"
