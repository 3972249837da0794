"""
Custom exception classes and error handling.

Provides consistent error responses across the API. Only NotFoundError,
PreconditionFailedError and PersistenceFailureError ever reach a caller;
CollaboratorUnavailableError is raised and absorbed inside the external
API clients so plan generation degrades to the local engine.
"""
from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class APIException(HTTPException):
    """Base API exception with consistent structure."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class NotFoundError(APIException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found: {identifier}",
            error_code="NOT_FOUND"
        )
        self.resource = resource
        self.identifier = identifier


class PreconditionFailedError(APIException):
    """Request is well-formed but cannot be applied (e.g. empty foods list)."""

    def __init__(self, detail: str, field: Optional[str] = None):
        error_code = f"PRECONDITION_FAILED_{field.upper()}" if field else "PRECONDITION_FAILED"
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )


class CollaboratorUnavailableError(APIException):
    """A third-party collaborator could not be reached or answered badly."""

    def __init__(self, collaborator: str, detail: str = "unavailable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{collaborator}: {detail}",
            error_code="COLLABORATOR_UNAVAILABLE"
        )
        self.collaborator = collaborator


class PersistenceFailureError(APIException):
    """The plan store rejected a read or write."""

    def __init__(self, operation: str, detail: str):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Persistence failure during {operation}: {detail}",
            error_code="PERSISTENCE_FAILURE"
        )
        self.operation = operation
