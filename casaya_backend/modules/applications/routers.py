"""Application API routes for tenants and landlords."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.exceptions import ValidationError
from ...database import get_db
from ..auth import CurrentUser, LandlordUser, TenantUser
from ..commons import BaseResponse
from ..documents import DocumentType
from ..documents import services as document_services
from ..documents.schemas import DocumentUploadResponse, IncomingFile
from ..documents.storage import ObjectStore, get_object_store
from ..scoring.schemas import CompatibilityResponse
from ..verification.dependencies import AggregatorDep
from ..verification.schemas import VerificationSnapshotResponse
from . import services
from .models import ApplicationStatus
from .schemas import (
    ApplicationDocumentsResponse,
    ApplicationResponse,
    ApplicationReviewResponse,
    ApplicationRevokeRequest,
    ApplicationRevokeResponse,
    ApplicationStatusUpdate,
    ApplicationSubmit,
    NoteCreate,
    NoteResponse,
)

router = APIRouter(prefix="/applications", tags=["Applications"])
landlord_router = APIRouter(prefix="/landlord/applications", tags=["Applications"])

DbSession = Annotated[AsyncSession, Depends(get_db)]
Store = Annotated[ObjectStore, Depends(get_object_store)]


async def read_uploads(**uploads: UploadFile | None) -> list[IncomingFile]:
    """Read multipart uploads keyed by their document slot names."""
    files = []
    for field_name, upload in uploads.items():
        if upload is None:
            continue
        files.append(
            IncomingFile(
                field_name=field_name,
                file_name=upload.filename,
                content_type=upload.content_type,
                data=await upload.read(),
            )
        )
    return files


# ----- Documents -----


@router.post("/documents", response_model=BaseResponse[DocumentUploadResponse])
async def upload_documents(
    current_user: TenantUser,
    db: DbSession,
    store: Store,
    id: UploadFile | None = File(None),
    bankStatement: UploadFile | None = File(None),
    form410: UploadFile | None = File(None),
    applicationId: UUID | None = Form(None),
):
    """Upload application documents; returns the application id to submit with."""
    files = await read_uploads(id=id, bankStatement=bankStatement, form410=form410)
    application_id = await services.upload_documents(
        db, store, current_user, files, application_id=applicationId
    )
    slots = await document_services.status(db, store, application_id)
    return BaseResponse(
        success=True,
        message="Documents uploaded successfully",
        data=DocumentUploadResponse(application_id=application_id, documents=slots),
    )


@router.get(
    "/{application_id}/documents",
    response_model=BaseResponse[ApplicationDocumentsResponse],
)
async def get_document_status(
    application_id: UUID, current_user: CurrentUser, db: DbSession, store: Store
):
    """Presence and URL of each of the three document slots."""
    slots = await services.document_status(db, store, application_id, current_user)
    return BaseResponse(
        success=True,
        data=ApplicationDocumentsResponse(
            application_id=application_id, documents=slots
        ),
    )


@router.get("/{application_id}/documents/{doc_type}")
async def download_document(
    application_id: UUID,
    doc_type: str,
    current_user: CurrentUser,
    db: DbSession,
    store: Store,
):
    """Download the bytes of one document."""
    try:
        slot = DocumentType.from_wire(doc_type)
    except ValueError:
        raise ValidationError(f"Unknown document type '{doc_type}'", field="docType")
    document, data = await services.download_document(
        db, store, application_id, slot, current_user
    )
    filename = document.file_name or document.blob_ref.rsplit("/", 1)[-1]
    return Response(
        content=data,
        media_type=document.content_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.put(
    "/{application_id}/documents",
    response_model=BaseResponse[ApplicationDocumentsResponse],
)
async def update_documents(
    application_id: UUID,
    current_user: TenantUser,
    db: DbSession,
    store: Store,
    id: UploadFile | None = File(None),
    bankStatement: UploadFile | None = File(None),
    form410: UploadFile | None = File(None),
):
    """Replace documents of a pending application."""
    files = await read_uploads(id=id, bankStatement=bankStatement, form410=form410)
    await services.update_documents(db, store, application_id, current_user, files)
    slots = await document_services.status(db, store, application_id)
    return BaseResponse(
        success=True,
        message="Documents updated successfully",
        data=ApplicationDocumentsResponse(
            application_id=application_id, documents=slots
        ),
    )


# ----- Tenant -----


@router.post("", response_model=BaseResponse[ApplicationResponse])
async def submit_application(
    data: ApplicationSubmit, current_user: TenantUser, db: DbSession
):
    """Submit an application for a property (tenant only)."""
    application = await services.submit(
        db,
        current_user.id,
        data.property_id,
        documents=data.documents,
        application_id=data.application_id,
    )
    return BaseResponse(
        success=True,
        message="Application submitted successfully",
        data=ApplicationResponse.model_validate(application),
    )


@router.get("", response_model=BaseResponse[list[ApplicationResponse]])
async def list_my_applications(
    current_user: TenantUser,
    db: DbSession,
    status: ApplicationStatus | None = Query(None),
):
    """List the caller's applications."""
    applications = await services.list_for_tenant(db, current_user.id, status)
    return BaseResponse(
        success=True,
        data=[ApplicationResponse.model_validate(a) for a in applications],
    )


@router.post("/revoke", response_model=BaseResponse[ApplicationRevokeResponse])
async def revoke_applications(
    data: ApplicationRevokeRequest,
    current_user: TenantUser,
    db: DbSession,
    store: Store,
):
    """Withdraw several pending applications at once."""
    revoked = await services.revoke_many(
        db, data.application_ids, current_user.id, store
    )
    return BaseResponse(
        success=True,
        message="Applications revoked successfully",
        data=ApplicationRevokeResponse(revoked=revoked),
    )


@router.get("/{application_id}", response_model=BaseResponse[ApplicationResponse])
async def get_application(
    application_id: UUID, current_user: CurrentUser, db: DbSession
):
    """Get an application as its tenant or landlord."""
    application = await services.get_application(db, application_id, current_user)
    return BaseResponse(
        success=True, data=ApplicationResponse.model_validate(application)
    )


@router.delete("/{application_id}", response_model=BaseResponse[None])
async def revoke_application(
    application_id: UUID, current_user: TenantUser, db: DbSession, store: Store
):
    """Withdraw a pending application."""
    await services.revoke(db, application_id, current_user.id, store)
    return BaseResponse(success=True, message="Application revoked successfully")


# ----- Landlord -----


@router.put(
    "/{application_id}/status", response_model=BaseResponse[ApplicationResponse]
)
async def update_application_status(
    application_id: UUID,
    data: ApplicationStatusUpdate,
    current_user: LandlordUser,
    db: DbSession,
):
    """Approve or reject a pending application (owning landlord only)."""
    application = await services.decide(db, application_id, current_user, data.status)
    return BaseResponse(
        success=True,
        message=f"Application {application.status.value.lower()}",
        data=ApplicationResponse.model_validate(application),
    )


@router.get(
    "/{application_id}/review",
    response_model=BaseResponse[ApplicationReviewResponse],
)
async def review_application(
    application_id: UUID,
    current_user: LandlordUser,
    db: DbSession,
    aggregator: AggregatorDep,
):
    """Application with the tenant's refreshed verification and compatibility."""
    application, snapshot, compatibility = await services.review(
        db, aggregator, application_id, current_user
    )
    return BaseResponse(
        success=True,
        data=ApplicationReviewResponse(
            application=ApplicationResponse.model_validate(application),
            verification=VerificationSnapshotResponse.from_snapshot(snapshot),
            ready_for_scoring=snapshot.is_ready_for_scoring,
            compatibility=CompatibilityResponse.from_result(
                application.tenant_id, application.property_id, compatibility
            ),
        ),
    )


@landlord_router.get("", response_model=BaseResponse[list[ApplicationResponse]])
async def list_landlord_applications(
    current_user: LandlordUser,
    db: DbSession,
    property_id: UUID | None = Query(None, alias="propertyId"),
    status: ApplicationStatus | None = Query(None),
):
    """List applications to the caller's properties."""
    applications = await services.list_for_landlord(
        db, current_user.id, property_id, status
    )
    return BaseResponse(
        success=True,
        data=[ApplicationResponse.model_validate(a) for a in applications],
    )


# ----- Notes -----


@router.get(
    "/{application_id}/notes", response_model=BaseResponse[list[NoteResponse]]
)
async def list_notes(application_id: UUID, current_user: CurrentUser, db: DbSession):
    """List notes on an application."""
    notes = await services.list_notes(db, application_id, current_user)
    return BaseResponse(
        success=True, data=[NoteResponse.model_validate(n) for n in notes]
    )


@router.post("/{application_id}/notes", response_model=BaseResponse[NoteResponse])
async def add_note(
    application_id: UUID,
    data: NoteCreate,
    current_user: CurrentUser,
    db: DbSession,
):
    """Add a note to an application as its tenant or landlord."""
    note = await services.add_note(db, application_id, current_user, data.content)
    return BaseResponse(
        success=True,
        message="Note added successfully",
        data=NoteResponse.model_validate(note),
    )
