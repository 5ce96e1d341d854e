"""Uniform interface implemented by every verification provider adapter.

An adapter owns its provider session: it opens it, completes it against the
provider and reports its state. It never writes the tenant's verification
snapshot; merging results is the aggregator's job.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ....config import VerificationPolicy
from ....core.exceptions import (
    ProviderRejectedError,
    ProviderUnavailableError,
    ValidationError,
)
from ....core.logging import get_logger
from ....core.utils import as_utc, utc_now
from .. import crud
from ..models import Provider, ProviderSession, VerificationState

logger = get_logger(__name__)


@dataclass
class ProviderToken:
    """Handle the client needs to continue a provider flow."""

    provider: Provider
    token: str
    expires_at: datetime


@dataclass
class VerificationResult:
    """Outcome of a provider session as seen by the aggregator."""

    provider: Provider
    state: VerificationState
    success: bool = False
    value: float | None = None
    details: dict[str, Any] = field(default_factory=dict)
    completed_at: datetime | None = None
    error: str | None = None
    # When this state was reached; None if no session exists
    observed_at: datetime | None = None
    # Ordering key: twice the session revision, plus one once the session
    # has expired. None if no session exists.
    sequence: int | None = None

    @classmethod
    def not_started(
        cls,
        provider: Provider,
        observed_at: datetime | None = None,
        sequence: int | None = None,
    ) -> "VerificationResult":
        return cls(
            provider=provider,
            state=VerificationState.NOT_STARTED,
            observed_at=observed_at,
            sequence=sequence,
        )

    @classmethod
    def from_session(cls, session: ProviderSession) -> "VerificationResult":
        return cls(
            provider=session.provider,
            state=session.state,
            success=session.success,
            value=session.value,
            details=dict(session.details or {}),
            completed_at=as_utc(session.completed_at),
            error=session.error,
            observed_at=as_utc(session.changed_at),
            sequence=2 * session.revision,
        )


@dataclass
class ProviderOutcome:
    """What a provider call established, before it is written to the session."""

    success: bool
    value: float | None = None
    details: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


class VerificationProviderAdapter(ABC):
    """Base class for the identity, bank-link, income and background adapters."""

    provider: Provider

    def __init__(
        self, session_factory: async_sessionmaker, policy: VerificationPolicy
    ):
        self.session_factory = session_factory
        self.policy = policy

    @abstractmethod
    async def open_session(self, db: AsyncSession, tenant_id: str) -> str:
        """Start the provider flow and return the token handed to the client."""

    @abstractmethod
    async def verify(
        self,
        db: AsyncSession,
        tenant_id: str,
        session: ProviderSession,
        payload: dict[str, Any],
    ) -> ProviderOutcome:
        """Run the provider checks for a completed client flow."""

    async def initiate(self, tenant_id: str) -> ProviderToken:
        """Open a provider session in ``in_progress`` with a TTL."""
        async with self.session_factory() as db:
            token = await self.open_session(db, tenant_id)
            now = utc_now()
            session = await crud.get_or_create_session(db, tenant_id, self.provider)
            session.state = VerificationState.IN_PROGRESS
            session.session_token = token
            session.expires_at = now + timedelta(minutes=self.policy.session_ttl_minutes)
            session.success = False
            session.value = None
            session.details = None
            session.error = None
            session.completed_at = None
            session.changed_at = now
            bump_revision(session)
            await db.commit()
            await db.refresh(session)

            logger.info(
                f"Opened {self.provider.value} session for tenant {tenant_id}",
                extra={"tenant_id": tenant_id, "provider": self.provider.value},
            )
            return ProviderToken(
                provider=self.provider,
                token=token,
                expires_at=as_utc(session.expires_at),
            )

    async def complete(
        self, tenant_id: str, payload: dict[str, Any] | None = None
    ) -> VerificationResult:
        """Finish the flow against the provider and record the outcome.

        A transient provider failure leaves the session ``pending`` for a
        later retry; a provider rejection marks it ``failed``.
        """
        payload = payload or {}
        async with self.session_factory() as db:
            session = await crud.get_or_create_session(db, tenant_id, self.provider)
            session.attempts = (session.attempts or 0) + 1

            try:
                outcome = await self.verify(db, tenant_id, session, payload)
            except ProviderUnavailableError as e:
                session.state = VerificationState.PENDING
                session.error = e.message
                logger.warning(
                    f"{self.provider.value} verification pending for tenant "
                    f"{tenant_id}: {e.message}",
                    extra={"tenant_id": tenant_id, "provider": self.provider.value},
                )
            except ProviderRejectedError as e:
                session.state = VerificationState.FAILED
                session.success = False
                session.value = None
                session.details = e.details
                session.error = e.message
                session.completed_at = utc_now()
                logger.info(
                    f"{self.provider.value} verification rejected for tenant "
                    f"{tenant_id}: {e.message}",
                    extra={"tenant_id": tenant_id, "provider": self.provider.value},
                )
            else:
                session.state = (
                    VerificationState.VERIFIED
                    if outcome.success
                    else VerificationState.FAILED
                )
                session.success = outcome.success
                session.value = outcome.value
                session.details = outcome.details
                session.error = outcome.error
                session.completed_at = utc_now()
                logger.info(
                    f"{self.provider.value} verification for tenant {tenant_id} "
                    f"finished: {session.state.value}",
                    extra={"tenant_id": tenant_id, "provider": self.provider.value},
                )

            session.payload = payload
            session.changed_at = utc_now()
            bump_revision(session)
            await db.commit()
            await db.refresh(session)
            return VerificationResult.from_session(session)

    async def status(self, tenant_id: str) -> VerificationResult:
        """Current result; an ``in_progress`` session past its TTL reads as not started."""
        async with self.session_factory() as db:
            session = await crud.get_session(db, tenant_id, self.provider)
            if session is None:
                return VerificationResult.not_started(self.provider)

            expires_at = as_utc(session.expires_at)
            if (
                session.state == VerificationState.IN_PROGRESS
                and expires_at is not None
                and expires_at <= utc_now()
            ):
                return VerificationResult.not_started(
                    self.provider,
                    observed_at=expires_at,
                    sequence=2 * session.revision + 1,
                )
            return VerificationResult.from_session(session)

    async def retry(self, tenant_id: str) -> VerificationResult | None:
        """Re-run ``complete`` with the stored payload of a ``pending`` session.

        If the stored input no longer validates (e.g. the tenant cleared a
        profile field the provider needs), the session is marked ``failed``
        so it drops out of the retry queue.
        """
        async with self.session_factory() as db:
            session = await crud.get_session(db, tenant_id, self.provider)
            if session is None or session.state != VerificationState.PENDING:
                return None
            payload = dict(session.payload or {})
        try:
            return await self.complete(tenant_id, payload)
        except ValidationError as e:
            return await self._mark_failed(tenant_id, e)

    async def _mark_failed(
        self, tenant_id: str, error: ValidationError
    ) -> VerificationResult | None:
        async with self.session_factory() as db:
            session = await crud.get_session(db, tenant_id, self.provider)
            if session is None or session.state != VerificationState.PENDING:
                return None
            session.state = VerificationState.FAILED
            session.success = False
            session.value = None
            session.details = dict(error.details)
            session.error = error.message
            session.completed_at = session.changed_at = utc_now()
            bump_revision(session)
            await db.commit()
            await db.refresh(session)

            logger.warning(
                f"{self.provider.value} retry for tenant {tenant_id} failed "
                f"validation: {error.message}",
                extra={"tenant_id": tenant_id, "provider": self.provider.value},
            )
            return VerificationResult.from_session(session)


def bump_revision(session: ProviderSession) -> None:
    """Advance the session revision in the same UPDATE as the state change."""
    if session.id is None:
        session.revision = 1
    else:
        session.revision = ProviderSession.revision + 1


def new_session_token() -> str:
    """Opaque token for providers that have no client-side flow."""
    return uuid.uuid4().hex
