"""Application schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from ..commons import ApiModel
from ..documents.schemas import DocumentSlot
from ..scoring.schemas import CompatibilityResponse
from ..verification.schemas import VerificationSnapshotResponse
from .models import ApplicationStatus, NoteCreatorType


class ApplicationSubmit(ApiModel):
    """Schema for submitting an application.

    ``documents`` maps slot names (``id``, ``bankStatement``, ``form410``)
    to blob references already in the object store.
    """

    property_id: UUID
    application_id: UUID | None = None
    documents: dict[str, str] | None = None


class ApplicationResponse(ApiModel):
    """Schema for application response."""

    id: UUID
    tenant_id: str
    property_id: UUID
    landlord_id: str
    status: ApplicationStatus
    created_at: datetime
    decided_at: datetime | None = None


class ApplicationStatusUpdate(ApiModel):
    """Landlord decision on a pending application."""

    status: ApplicationStatus

    @field_validator("status")
    @classmethod
    def validate_decision(cls, v: ApplicationStatus) -> ApplicationStatus:
        if not v.is_terminal:
            raise ValueError("status must be Approved or Rejected")
        return v


class ApplicationRevokeRequest(ApiModel):
    application_ids: list[UUID] = Field(..., min_length=1)


class ApplicationRevokeResponse(ApiModel):
    revoked: int


class ApplicationDocumentsResponse(ApiModel):
    application_id: UUID
    documents: dict[str, DocumentSlot]


class NoteCreate(ApiModel):
    content: str = Field(..., min_length=1, max_length=5000)


class NoteResponse(ApiModel):
    id: int
    application_id: UUID
    creator_type: NoteCreatorType
    creator_id: str
    content: str
    created_at: datetime


class ApplicationReviewResponse(ApiModel):
    """What a landlord sees when reviewing an application."""

    application: ApplicationResponse
    verification: VerificationSnapshotResponse
    ready_for_scoring: bool
    compatibility: CompatibilityResponse
