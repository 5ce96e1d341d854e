"""Tenant profile schemas."""

from datetime import date, datetime

from pydantic import Field, field_validator

from ..commons import ApiModel


class TenantUpdate(ApiModel):
    """Schema for updating the caller's tenant profile."""

    first_name: str | None = Field(None, min_length=1, max_length=120)
    last_name: str | None = Field(None, min_length=1, max_length=120)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    ssn: str | None = Field(None, max_length=11)
    date_of_birth: date | None = None
    current_address: str | None = Field(None, max_length=500)
    employment_history_years: float | None = Field(None, ge=0)

    @field_validator("ssn")
    @classmethod
    def validate_ssn(cls, v: str | None) -> str | None:
        if v is None:
            return v
        digits = v.replace("-", "")
        if len(digits) != 9 or not digits.isdigit():
            raise ValueError("SSN must contain exactly 9 digits")
        return digits


class TenantResponse(ApiModel):
    """Schema for tenant profile response; the SSN is reduced to its last four."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    ssn_last_four: str | None = None
    date_of_birth: date | None = None
    current_address: str | None = None
    employment_history_years: float
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_tenant(cls, tenant) -> "TenantResponse":
        response = cls.model_validate(tenant)
        response.ssn_last_four = tenant.ssn[-4:] if tenant.ssn else None
        return response
