"""Verification API routes."""

from fastapi import APIRouter

from ..auth import TenantUser
from ..commons import BaseResponse
from . import services
from .dependencies import AdaptersDep, AggregatorDep
from .models import Provider
from .schemas import (
    ProviderTokenResponse,
    VerificationCompleteRequest,
    VerificationResultResponse,
    VerificationSnapshotResponse,
)

router = APIRouter(prefix="/verification", tags=["Verification"])


@router.get("/snapshot", response_model=BaseResponse[VerificationSnapshotResponse])
async def get_snapshot(current_user: TenantUser, aggregator: AggregatorDep):
    """Get the caller's merged verification snapshot."""
    snapshot = await services.get_snapshot(aggregator, current_user.id)
    return BaseResponse(
        success=True, data=VerificationSnapshotResponse.from_snapshot(snapshot)
    )


@router.post("/refresh", response_model=BaseResponse[VerificationSnapshotResponse])
async def refresh_snapshot(current_user: TenantUser, aggregator: AggregatorDep):
    """Re-read every provider session and merge the results."""
    snapshot = await services.refresh(aggregator, current_user.id)
    return BaseResponse(
        success=True,
        message="Verification snapshot refreshed",
        data=VerificationSnapshotResponse.from_snapshot(snapshot),
    )


@router.post(
    "/{provider}/initiate", response_model=BaseResponse[ProviderTokenResponse]
)
async def initiate_verification(
    provider: Provider, current_user: TenantUser, adapters: AdaptersDep
):
    """Open a verification session with a provider."""
    token = await services.initiate(adapters, provider, current_user.id)
    return BaseResponse(success=True, data=ProviderTokenResponse.from_token(token))


@router.post(
    "/{provider}/complete", response_model=BaseResponse[VerificationResultResponse]
)
async def complete_verification(
    provider: Provider,
    data: VerificationCompleteRequest,
    current_user: TenantUser,
    adapters: AdaptersDep,
    aggregator: AggregatorDep,
):
    """Complete a verification session; a pending result will be retried later."""
    result = await services.complete(
        adapters, aggregator, provider, current_user.id, data.to_payload()
    )
    return BaseResponse(
        success=True,
        message=f"Verification {result.state.value}",
        data=VerificationResultResponse.from_result(result),
    )


@router.get(
    "/{provider}/status", response_model=BaseResponse[VerificationResultResponse]
)
async def get_verification_status(
    provider: Provider, current_user: TenantUser, adapters: AdaptersDep
):
    """Get the state of the caller's session with a provider."""
    result = await services.get_status(adapters, provider, current_user.id)
    return BaseResponse(success=True, data=VerificationResultResponse.from_result(result))
