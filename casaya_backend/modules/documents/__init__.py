"""Document store: the three document slots required by every application."""

from .models import REQUIRED_DOCUMENTS, ApplicationDocument, DocumentType
from .storage import LocalObjectStore, ObjectStore, get_object_store

__all__ = [
    "ApplicationDocument",
    "DocumentType",
    "REQUIRED_DOCUMENTS",
    "ObjectStore",
    "LocalObjectStore",
    "get_object_store",
]
