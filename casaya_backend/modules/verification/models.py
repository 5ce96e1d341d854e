"""Verification models.

``VerificationSnapshot`` is the merged, per-tenant view the application
pipeline reads. ``ProviderSession`` is the state each provider adapter keeps
for one tenant; only the aggregator copies it into the snapshot.
"""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from ...database import Base, TimestampMixin


class Provider(str, enum.Enum):
    """Verification providers; values double as snapshot field names."""

    IDENTITY = "identity"
    BANK_ACCOUNT = "bank_account"
    INCOME = "income"
    BACKGROUND = "background"


class VerificationState(str, enum.Enum):
    """Lifecycle of a provider session and of a snapshot field."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class BackgroundCheckStatus(str, enum.Enum):
    """Background check status exposed to landlords."""

    NOT_STARTED = "NotStarted"
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"


_BACKGROUND_STATUS = {
    VerificationState.NOT_STARTED: BackgroundCheckStatus.NOT_STARTED,
    VerificationState.IN_PROGRESS: BackgroundCheckStatus.PENDING,
    VerificationState.PENDING: BackgroundCheckStatus.PENDING,
    VerificationState.VERIFIED: BackgroundCheckStatus.COMPLETED,
    VerificationState.FAILED: BackgroundCheckStatus.FAILED,
}


def _state_column():
    return mapped_column(
        Enum(VerificationState),
        default=VerificationState.NOT_STARTED,
        nullable=False,
    )


def _timestamp_column():
    return mapped_column(DateTime(timezone=True), nullable=True)


def _version_column():
    return mapped_column(Integer, default=0, nullable=False)


class VerificationSnapshot(TimestampMixin, Base):
    """Merged verification state of one tenant.

    Every field carries its own version counter, so concurrent refreshes
    of different fields never conflict. ``<field>_revision`` holds the
    ordering key of the last provider result the field absorbed.
    """

    __tablename__ = "verification_snapshots"

    tenant_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    identity_state: Mapped[VerificationState] = _state_column()
    identity_verified_at: Mapped[datetime | None] = _timestamp_column()
    identity_checked_at: Mapped[datetime | None] = _timestamp_column()
    identity_version: Mapped[int] = _version_column()
    identity_revision: Mapped[int] = _version_column()

    bank_account_state: Mapped[VerificationState] = _state_column()
    bank_account_verified_at: Mapped[datetime | None] = _timestamp_column()
    bank_account_checked_at: Mapped[datetime | None] = _timestamp_column()
    bank_account_version: Mapped[int] = _version_column()
    bank_account_revision: Mapped[int] = _version_column()

    income_state: Mapped[VerificationState] = _state_column()
    income_verified_at: Mapped[datetime | None] = _timestamp_column()
    income_checked_at: Mapped[datetime | None] = _timestamp_column()
    income_version: Mapped[int] = _version_column()
    income_revision: Mapped[int] = _version_column()

    background_state: Mapped[VerificationState] = _state_column()
    background_verified_at: Mapped[datetime | None] = _timestamp_column()
    background_checked_at: Mapped[datetime | None] = _timestamp_column()
    background_version: Mapped[int] = _version_column()
    background_revision: Mapped[int] = _version_column()

    verified_income: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    credit_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def state_of(self, provider: Provider) -> VerificationState:
        return getattr(self, f"{provider.value}_state")

    @property
    def identity_verified(self) -> bool:
        return self.identity_state == VerificationState.VERIFIED

    @property
    def bank_account_verified(self) -> bool:
        return self.bank_account_state == VerificationState.VERIFIED

    @property
    def background_check_status(self) -> BackgroundCheckStatus:
        return _BACKGROUND_STATUS[self.background_state]

    @property
    def is_ready_for_scoring(self) -> bool:
        return self.identity_verified and self.bank_account_verified

    def __repr__(self) -> str:
        return f"<VerificationSnapshot(tenant_id={self.tenant_id})>"


class ProviderSession(TimestampMixin, Base):
    """Adapter-owned state of one tenant's session with one provider."""

    __tablename__ = "verification_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    provider: Mapped[Provider] = mapped_column(Enum(Provider), nullable=False)
    state: Mapped[VerificationState] = mapped_column(
        Enum(VerificationState),
        default=VerificationState.NOT_STARTED,
        nullable=False,
    )
    session_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # Bank-link item token shared by the identity, bank and income adapters
    access_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    success: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    value: Mapped[float | None] = mapped_column(Float, nullable=True)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    changed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # Incremented in the database on every state change; orders results for
    # the aggregator independently of clock precision.
    revision: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "provider", name="uq_session_tenant_provider"),
        Index("ix_verification_sessions_state", "state"),
    )

    def __repr__(self) -> str:
        return (
            f"<ProviderSession(tenant_id={self.tenant_id}, "
            f"provider={self.provider.value}, state={self.state.value})>"
        )
