"""Application business logic services.

Owns the ``Pending -> Approved | Rejected`` state machine. Status changes are
a single conditional UPDATE on the expected current state, so two landlords
(or two requests of one landlord) racing on the same application can never
both win.
"""

import uuid
from collections import Counter
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import settings
from ...core.exceptions import (
    ConflictError,
    DuplicateApplicationError,
    ForbiddenError,
    IncompleteDocumentsError,
    NotPendingError,
    PropertyUnavailableError,
    ResourceNotFoundError,
    ValidationError,
    VerificationIncompleteError,
)
from ...core.logging import get_logger
from ...core.utils import utc_now
from ..auth import AuthenticatedUser
from ..documents import DocumentType
from ..documents import services as document_services
from ..documents.schemas import DocumentSlot, IncomingFile
from ..documents.storage import ObjectStore
from ..property_management import crud as property_crud
from ..scoring import services as scoring_services
from ..scoring.engine import CompatibilityResult
from ..verification import crud as verification_crud
from ..verification.aggregator import VerificationAggregator
from ..verification.models import VerificationSnapshot
from . import crud
from .models import Application, ApplicationNote, ApplicationStatus, NoteCreatorType

logger = get_logger(__name__)


def _forbidden(
    user: AuthenticatedUser, action: str, application: Application
) -> ForbiddenError:
    logger.warning(
        f"Principal {user.id} ({user.role.value}) attempted to {action} "
        f"application {application.id} of tenant {application.tenant_id} "
        f"and landlord {application.landlord_id}",
        extra={
            "principal_id": user.id,
            "application_id": str(application.id),
            "security_event": "principal_mismatch",
        },
    )
    return ForbiddenError(action, "application", {"application_id": str(application.id)})


async def _get_or_404(db: AsyncSession, application_id: UUID) -> Application:
    application = await crud.get_application_by_id(db, application_id)
    if not application:
        raise ResourceNotFoundError("Application", application_id)
    return application


def _is_party(user: AuthenticatedUser, application: Application) -> bool:
    if user.is_tenant:
        return application.tenant_id == user.id
    return application.landlord_id == user.id


async def get_application(
    db: AsyncSession, application_id: UUID, user: AuthenticatedUser
) -> Application:
    """Get an application visible to the tenant or landlord it belongs to."""
    application = await _get_or_404(db, application_id)
    if not _is_party(user, application):
        raise _forbidden(user, "view", application)
    return application


# ----- Submission -----


async def submit(
    db: AsyncSession,
    tenant_id: str,
    property_id: UUID,
    documents: dict[str, str] | None = None,
    application_id: UUID | None = None,
) -> Application:
    """Create a pending application once every precondition holds.

    Checks run in order: the property exists and is not leased, all three
    document slots are filled (after recording any given pointers), no other
    pending application exists for the same tenant and property, and, when
    configured, identity and bank account are verified.
    """
    prop = await property_crud.get_property_by_id(db, property_id)
    if not prop:
        raise ResourceNotFoundError("Property", property_id)
    if prop.is_leased:
        raise PropertyUnavailableError(
            f"Property '{property_id}' is already leased",
            {"property_id": str(property_id)},
        )

    if application_id is None:
        application_id = uuid.uuid4()
    elif await crud.get_application_by_id(db, application_id):
        raise DuplicateApplicationError(
            f"Application '{application_id}' has already been submitted",
            {"application_id": str(application_id)},
        )
    else:
        owner = await document_services.owner_of(db, application_id)
        if owner is not None and owner != tenant_id:
            logger.warning(
                f"Tenant {tenant_id} tried to submit documents of {owner} "
                f"under application {application_id}",
                extra={"security_event": "principal_mismatch"},
            )
            raise ForbiddenError("submit", "application")

    for name, blob_ref in (documents or {}).items():
        try:
            doc_type = DocumentType.from_wire(name)
        except ValueError:
            raise ValidationError(f"Unknown document type '{name}'", field="documents")
        await document_services.put(db, application_id, doc_type, blob_ref, tenant_id)

    missing = await document_services.missing_documents(db, application_id)
    if missing:
        raise IncompleteDocumentsError(missing)

    if await crud.get_pending_application(db, tenant_id, property_id):
        raise DuplicateApplicationError(
            "A pending application for this property already exists",
            {"property_id": str(property_id)},
        )

    if settings.applications.require_verification:
        snapshot = await verification_crud.get_snapshot(db, tenant_id)
        if snapshot is None or not snapshot.is_ready_for_scoring:
            raise VerificationIncompleteError(
                "Identity and bank account verification must be completed"
            )

    try:
        application = await crud.create_application(
            db, application_id, tenant_id, property_id, prop.landlord_id
        )
        await property_crud.increment_applicants(db, property_id)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateApplicationError(
            "A pending application for this property already exists",
            {"property_id": str(property_id)},
        )

    logger.info(
        f"Tenant {tenant_id} applied to property {property_id}",
        extra={"application_id": str(application_id), "tenant_id": tenant_id},
    )
    return await crud.get_application_by_id(db, application_id, refresh=True)


# ----- Decision -----


async def decide(
    db: AsyncSession,
    application_id: UUID,
    user: AuthenticatedUser,
    decision: ApplicationStatus,
) -> Application:
    """Approve or reject a pending application owned by the landlord."""
    if not decision.is_terminal:
        raise ValidationError("must be Approved or Rejected", field="status")

    application = await _get_or_404(db, application_id)
    if application.landlord_id != user.id:
        raise _forbidden(user, "decide", application)
    if application.status.is_terminal:
        raise NotPendingError(application_id, application.status.value)

    if not await crud.transition_from_pending(db, application_id, decision, utc_now()):
        await db.rollback()
        current = await crud.get_application_by_id(db, application_id, refresh=True)
        if current is None:
            raise ResourceNotFoundError("Application", application_id)
        if current.status.is_terminal:
            raise NotPendingError(application_id, current.status.value)
        raise ConflictError(
            "Application changed concurrently; retry",
            {"application_id": str(application_id)},
        )

    if decision == ApplicationStatus.APPROVED:
        await property_crud.mark_leased(db, application.property_id)
    await db.commit()

    logger.info(
        f"Landlord {user.id} set application {application_id} to {decision.value}",
        extra={"application_id": str(application_id), "status": decision.value},
    )
    return await crud.get_application_by_id(db, application_id, refresh=True)


# ----- Revocation -----


async def revoke_many(
    db: AsyncSession,
    application_ids: list[UUID],
    tenant_id: str,
    store: ObjectStore | None = None,
) -> int:
    """Withdraw pending applications of the tenant, all or nothing.

    The applicant counters of the properties drop in the same transaction;
    with a ``store`` the document bytes are removed once it has committed.
    """
    ids = list(dict.fromkeys(application_ids))
    applications = {a.id: a for a in await crud.get_applications_by_ids(db, ids)}

    for application_id in ids:
        application = applications.get(application_id)
        if application is None:
            raise ResourceNotFoundError("Application", application_id)
        if application.tenant_id != tenant_id:
            logger.warning(
                f"Tenant {tenant_id} attempted to revoke application "
                f"{application_id} of tenant {application.tenant_id}",
                extra={"security_event": "principal_mismatch"},
            )
            raise ForbiddenError("revoke", "application")
        if application.status.is_terminal:
            raise NotPendingError(application_id, application.status.value)

    per_property = Counter(applications[i].property_id for i in ids)
    deleted = await crud.delete_pending_applications(db, ids)
    if deleted != len(ids):
        await db.rollback()
        raise ConflictError("An application was decided concurrently; retry")
    blob_refs: list[str] = []
    for application_id in ids:
        blob_refs += await document_services.delete_all(db, application_id)
    for property_id, count in per_property.items():
        await property_crud.decrement_applicants(db, property_id, count)
    await db.commit()

    if store is not None:
        await document_services.purge_objects(store, blob_refs)

    logger.info(f"Tenant {tenant_id} revoked {deleted} application(s)")
    return deleted


async def revoke(
    db: AsyncSession,
    application_id: UUID,
    tenant_id: str,
    store: ObjectStore | None = None,
) -> None:
    """Withdraw one pending application of the tenant."""
    await revoke_many(db, [application_id], tenant_id, store)


# ----- Listing -----


async def list_for_tenant(
    db: AsyncSession, tenant_id: str, status: ApplicationStatus | None = None
) -> list[Application]:
    return await crud.get_applications(db, tenant_id=tenant_id, status=status)


async def list_for_landlord(
    db: AsyncSession,
    landlord_id: str,
    property_id: UUID | None = None,
    status: ApplicationStatus | None = None,
) -> list[Application]:
    """Applications of the landlord, optionally for one of their properties."""
    if property_id is not None:
        prop = await property_crud.get_property_for_landlord(
            db, property_id, landlord_id
        )
        if not prop:
            raise ResourceNotFoundError("Property", property_id)
    return await crud.get_applications(
        db, landlord_id=landlord_id, property_id=property_id, status=status
    )


# ----- Documents -----


async def _ensure_document_access(
    db: AsyncSession, application_id: UUID, user: AuthenticatedUser
) -> Application | None:
    """Parties of a submitted application, or the uploader before submission."""
    application = await crud.get_application_by_id(db, application_id)
    if application is not None:
        if not _is_party(user, application):
            raise _forbidden(user, "view documents of", application)
        return application
    owner = await document_services.owner_of(db, application_id)
    if owner is None or owner != user.id:
        raise ResourceNotFoundError("Application", application_id)
    return None


async def document_status(
    db: AsyncSession,
    store: ObjectStore,
    application_id: UUID,
    user: AuthenticatedUser,
) -> dict[str, DocumentSlot]:
    await _ensure_document_access(db, application_id, user)
    return await document_services.status(db, store, application_id)


async def download_document(
    db: AsyncSession,
    store: ObjectStore,
    application_id: UUID,
    doc_type: DocumentType,
    user: AuthenticatedUser,
):
    await _ensure_document_access(db, application_id, user)
    return await document_services.download(db, store, application_id, doc_type)


async def upload_documents(
    db: AsyncSession,
    store: ObjectStore,
    user: AuthenticatedUser,
    files: list[IncomingFile],
    application_id: UUID | None = None,
) -> UUID:
    """Upload documents, reserving an application id when none is given."""
    if application_id is not None:
        application = await crud.get_application_by_id(db, application_id)
        if application is not None:
            if application.tenant_id != user.id:
                raise _forbidden(user, "upload documents for", application)
            if application.status.is_terminal:
                raise NotPendingError(application_id, application.status.value)
        else:
            owner = await document_services.owner_of(db, application_id)
            if owner is not None and owner != user.id:
                raise ForbiddenError("upload documents for", "application")
    return await document_services.upload(
        db, store, user.id, files, application_id=application_id
    )


async def update_documents(
    db: AsyncSession,
    store: ObjectStore,
    application_id: UUID,
    user: AuthenticatedUser,
    files: list[IncomingFile],
) -> None:
    """Replace documents of a submitted application while it is pending."""
    application = await _get_or_404(db, application_id)
    if application.tenant_id != user.id:
        raise _forbidden(user, "update documents of", application)
    if application.status.is_terminal:
        raise NotPendingError(application_id, application.status.value)
    await document_services.upload(
        db, store, user.id, files, application_id=application_id
    )


# ----- Notes -----


async def add_note(
    db: AsyncSession, application_id: UUID, user: AuthenticatedUser, content: str
) -> ApplicationNote:
    """Add a note as the tenant or the landlord of the application."""
    application = await get_application(db, application_id, user)
    creator_type = (
        NoteCreatorType.TENANT if user.is_tenant else NoteCreatorType.LANDLORD
    )
    note = await crud.create_note(db, application.id, creator_type, user.id, content)
    await db.commit()
    await db.refresh(note)
    return note


async def list_notes(
    db: AsyncSession, application_id: UUID, user: AuthenticatedUser
) -> list[ApplicationNote]:
    application = await get_application(db, application_id, user)
    return await crud.get_notes(db, application.id)


# ----- Review -----


async def review(
    db: AsyncSession,
    aggregator: VerificationAggregator,
    application_id: UUID,
    user: AuthenticatedUser,
) -> tuple[Application, VerificationSnapshot, CompatibilityResult]:
    """Landlord view: the application, a fresh snapshot and compatibility."""
    application = await _get_or_404(db, application_id)
    if application.landlord_id != user.id:
        raise _forbidden(user, "review", application)

    snapshot = await aggregator.refresh(application.tenant_id)
    # End the read transaction so the refreshed snapshot is visible here
    await db.commit()
    compatibility = await scoring_services.check_compatibility(
        db, application.tenant_id, application.property_id
    )
    return application, snapshot, compatibility
