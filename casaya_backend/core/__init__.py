"""Core infrastructure for the Casaya backend."""

from .database_types import UUIDString
from .exceptions import (
    CasayaException,
    ConflictError,
    DocumentNotFoundError,
    DuplicateApplicationError,
    ExternalServiceError,
    ForbiddenError,
    IncompleteDocumentsError,
    NotPendingError,
    PreconditionFailedError,
    PropertyUnavailableError,
    ProviderRejectedError,
    ProviderUnavailableError,
    ResourceNotFoundError,
    StorageError,
    ValidationError,
    VerificationIncompleteError,
)

__all__ = [
    "UUIDString",
    "CasayaException",
    "ResourceNotFoundError",
    "DocumentNotFoundError",
    "ValidationError",
    "PreconditionFailedError",
    "IncompleteDocumentsError",
    "NotPendingError",
    "DuplicateApplicationError",
    "PropertyUnavailableError",
    "VerificationIncompleteError",
    "ForbiddenError",
    "ConflictError",
    "ExternalServiceError",
    "ProviderUnavailableError",
    "ProviderRejectedError",
    "StorageError",
]
