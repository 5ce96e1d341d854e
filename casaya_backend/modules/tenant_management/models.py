"""Tenant profile model.

The tenant's identity comes from the external identity provider; the row is
keyed by that principal id and holds the contact details and the inputs the
credit check needs.
"""

from datetime import date

from sqlalchemy import Date, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from ...database import Base, TimestampMixin


class Tenant(TimestampMixin, Base):
    """A renter applying to properties."""

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    first_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Credit check inputs
    ssn: Mapped[str | None] = mapped_column(String(11), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    current_address: Mapped[str | None] = mapped_column(String(500), nullable=True)

    employment_history_years: Mapped[float] = mapped_column(
        Float, default=0.0, nullable=False
    )

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name={self.full_name})>"
