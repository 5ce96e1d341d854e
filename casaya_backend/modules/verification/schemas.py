"""Verification schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import Field

from ..commons import ApiModel
from .models import BackgroundCheckStatus, Provider, VerificationSnapshot, VerificationState
from .providers import ProviderToken, VerificationResult


class ProviderTokenResponse(ApiModel):
    provider: Provider
    token: str
    expires_at: datetime

    @classmethod
    def from_token(cls, token: ProviderToken) -> "ProviderTokenResponse":
        return cls(provider=token.provider, token=token.token, expires_at=token.expires_at)


class VerificationCompleteRequest(ApiModel):
    """Client payload finishing a provider flow."""

    public_token: str | None = Field(None, max_length=255)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class VerificationResultResponse(ApiModel):
    provider: Provider
    state: VerificationState
    success: bool
    value: float | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    completed_at: datetime | None = None
    error: str | None = None

    @classmethod
    def from_result(cls, result: VerificationResult) -> "VerificationResultResponse":
        return cls(
            provider=result.provider,
            state=result.state,
            success=result.success,
            value=result.value,
            details=result.details,
            completed_at=result.completed_at,
            error=result.error,
        )


class FieldStatus(ApiModel):
    state: VerificationState
    verified_at: datetime | None = None
    checked_at: datetime | None = None


class VerificationSnapshotResponse(ApiModel):
    """Merged verification state of a tenant."""

    tenant_id: str
    identity: FieldStatus
    bank_account: FieldStatus
    income: FieldStatus
    background: FieldStatus
    verified_income: Decimal
    credit_score: int | None = None
    identity_verified: bool
    bank_account_verified: bool
    background_check_status: BackgroundCheckStatus
    ready_for_scoring: bool

    @classmethod
    def from_snapshot(
        cls, snapshot: VerificationSnapshot
    ) -> "VerificationSnapshotResponse":
        fields = {
            provider.value: FieldStatus(
                state=getattr(snapshot, f"{provider.value}_state"),
                verified_at=getattr(snapshot, f"{provider.value}_verified_at"),
                checked_at=getattr(snapshot, f"{provider.value}_checked_at"),
            )
            for provider in Provider
        }
        return cls(
            tenant_id=snapshot.tenant_id,
            verified_income=snapshot.verified_income,
            credit_score=snapshot.credit_score,
            identity_verified=snapshot.identity_verified,
            bank_account_verified=snapshot.bank_account_verified,
            background_check_status=snapshot.background_check_status,
            ready_for_scoring=snapshot.is_ready_for_scoring,
            **fields,
        )
