"""CRUD operations for verification snapshots and provider sessions."""

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Provider, ProviderSession, VerificationSnapshot, VerificationState

# ----- Snapshot CRUD -----


async def get_snapshot(db: AsyncSession, tenant_id: str) -> VerificationSnapshot | None:
    """Get the snapshot of a tenant."""
    result = await db.execute(
        select(VerificationSnapshot).where(VerificationSnapshot.tenant_id == tenant_id)
    )
    return result.scalar_one_or_none()


async def get_or_create_snapshot(
    db: AsyncSession, tenant_id: str
) -> VerificationSnapshot:
    """Get the snapshot, inserting an empty one if none exists yet (commits)."""
    snapshot = await get_snapshot(db, tenant_id)
    if snapshot:
        return snapshot
    db.add(VerificationSnapshot(tenant_id=tenant_id))
    try:
        await db.commit()
    except IntegrityError:
        # Another refresh inserted it first
        await db.rollback()
    result = await db.execute(
        select(VerificationSnapshot)
        .where(VerificationSnapshot.tenant_id == tenant_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def compare_and_set_field(
    db: AsyncSession,
    tenant_id: str,
    provider: Provider,
    expected_version: int,
    values: dict,
) -> bool:
    """Update one snapshot field only if its version is still ``expected_version``.

    Returns True when the row was updated; the caller commits.
    """
    version_column = getattr(VerificationSnapshot, f"{provider.value}_version")
    result = await db.execute(
        update(VerificationSnapshot)
        .where(
            VerificationSnapshot.tenant_id == tenant_id,
            version_column == expected_version,
        )
        .values(**values, **{f"{provider.value}_version": expected_version + 1})
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


# ----- Provider Session CRUD -----


async def get_session(
    db: AsyncSession, tenant_id: str, provider: Provider
) -> ProviderSession | None:
    """Get a tenant's session with one provider."""
    result = await db.execute(
        select(ProviderSession).where(
            ProviderSession.tenant_id == tenant_id,
            ProviderSession.provider == provider,
        )
    )
    return result.scalar_one_or_none()


async def get_or_create_session(
    db: AsyncSession, tenant_id: str, provider: Provider
) -> ProviderSession:
    """Get a session, adding a fresh one to the unit of work if missing."""
    session = await get_session(db, tenant_id, provider)
    if session is None:
        session = ProviderSession(
            tenant_id=tenant_id,
            provider=provider,
            state=VerificationState.NOT_STARTED,
            success=False,
            attempts=0,
            revision=0,
        )
        db.add(session)
    return session


async def find_access_token(
    db: AsyncSession, tenant_id: str, providers: tuple[Provider, ...]
) -> str | None:
    """Most recently stored bank-link access token among the given providers."""
    result = await db.execute(
        select(ProviderSession.access_token)
        .where(
            ProviderSession.tenant_id == tenant_id,
            ProviderSession.provider.in_(providers),
            ProviderSession.access_token.is_not(None),
        )
        .order_by(ProviderSession.changed_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_tenants_with_pending_sessions(db: AsyncSession) -> list[str]:
    """Tenants with at least one session waiting for a provider retry."""
    result = await db.execute(
        select(ProviderSession.tenant_id)
        .where(ProviderSession.state == VerificationState.PENDING)
        .distinct()
    )
    return list(result.scalars().all())
