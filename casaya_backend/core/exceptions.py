"""
Custom exception classes for consistent error handling across all modules.

Every exception carries the HTTP status it maps to and a stable ``code`` so
clients can branch on the failure kind without parsing messages.
"""

from typing import Any


class CasayaException(Exception):
    """Base exception for all Casaya related errors."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(CasayaException):
    """Raised when a requested resource is not found."""

    status_code = 404
    code = "not_found"

    def __init__(
        self,
        resource_type: str,
        identifier: Any,
        details: dict[str, Any] | None = None,
    ):
        message = f"{resource_type} with identifier '{identifier}' not found"
        super().__init__(message, details)
        self.resource_type = resource_type
        self.identifier = identifier


class DocumentNotFoundError(ResourceNotFoundError):
    """Raised when a document slot of an application is empty."""

    code = "document_not_found"

    def __init__(self, application_id: Any, doc_type: str):
        super().__init__(
            "Document",
            f"{application_id}/{doc_type}",
            {"application_id": str(application_id), "doc_type": doc_type},
        )
        self.application_id = application_id
        self.doc_type = doc_type


class ValidationError(CasayaException):
    """Raised when data validation fails."""

    status_code = 422
    code = "validation_error"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ):
        if field:
            full_message = f"Validation error for field '{field}': {message}"
        else:
            full_message = message
        super().__init__(full_message, details)
        self.field = field
        self.value = value


class PreconditionFailedError(CasayaException):
    """Raised when an operation is not allowed in the current state."""

    status_code = 412
    code = "precondition_failed"


class IncompleteDocumentsError(PreconditionFailedError):
    """Raised when an application is submitted without every document slot."""

    code = "incomplete_documents"

    def __init__(self, missing: list[str]):
        super().__init__(
            f"Missing required documents: {', '.join(missing)}",
            {"missing": missing},
        )
        self.missing = missing


class NotPendingError(PreconditionFailedError):
    """Raised when an application has already reached a terminal state."""

    code = "not_pending"

    def __init__(self, application_id: Any, status: str):
        super().__init__(
            f"Application '{application_id}' is {status}, not pending",
            {"application_id": str(application_id), "status": status},
        )
        self.status = status


class DuplicateApplicationError(PreconditionFailedError):
    """Raised when the tenant already has a pending application for a property."""

    code = "duplicate_application"


class PropertyUnavailableError(PreconditionFailedError):
    """Raised when applying to a property that is already leased."""

    code = "property_unavailable"


class VerificationIncompleteError(PreconditionFailedError):
    """Raised when identity and bank verification are required but missing."""

    code = "verification_incomplete"


class ForbiddenError(CasayaException):
    """Raised when the calling principal does not own the resource."""

    status_code = 403
    code = "forbidden"

    def __init__(
        self, action: str, resource_type: str, details: dict[str, Any] | None = None
    ):
        message = f"Permission denied: cannot {action} {resource_type}"
        super().__init__(message, details)
        self.action = action
        self.resource_type = resource_type


class ConflictError(CasayaException):
    """Raised when a concurrent update won the race; the caller may retry."""

    status_code = 409
    code = "conflict"


class ExternalServiceError(CasayaException):
    """Raised when external service integration fails."""

    status_code = 502
    code = "external_service_error"

    def __init__(
        self,
        service_name: str,
        operation: str,
        details: dict[str, Any] | None = None,
    ):
        message = f"External service '{service_name}' failed during '{operation}'"
        super().__init__(message, details)
        self.service_name = service_name
        self.operation = operation


class ProviderUnavailableError(ExternalServiceError):
    """Transient provider failure (timeout, connection error, 5xx, 429)."""

    status_code = 503
    code = "provider_unavailable"


class ProviderRejectedError(ExternalServiceError):
    """The provider answered but refused the verification."""

    status_code = 422
    code = "provider_rejected"


class StorageError(ExternalServiceError):
    """Raised when the object store cannot read or write a blob."""

    code = "storage_error"
