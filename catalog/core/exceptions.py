"""
Catalog error taxonomy

Services raise these; the handlers registered in catalog.main turn them into
the `{"success": false, "error": "..."}` envelope.
"""
from fastapi import status


class CatalogError(Exception):
    """Base class for errors surfaced to API clients"""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CatalogError):
    """Requested id or slug does not resolve to a record"""

    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(CatalogError):
    """Missing required field, duplicate slug or reference to a wrong/missing record"""

    status_code = status.HTTP_400_BAD_REQUEST


class AccessDeniedError(CatalogError):
    status_code = status.HTTP_403_FORBIDDEN


class UpstreamFailure(CatalogError):
    """The storage collaborator raised. Propagated, never retried."""

    status_code = status.HTTP_400_BAD_REQUEST
