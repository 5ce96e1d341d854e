"""Property model.

Listings are owned by the listings service; this core keeps only the fields
the application pipeline reads: the owning landlord, the rent used for
affordability checks, and leasing state.
"""

import uuid

from sqlalchemy import Boolean, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ...core.database_types import UUIDString
from ...database import Base, TimestampMixin


class Property(TimestampMixin, Base):
    """A rentable property listed by a landlord."""

    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDString(), primary_key=True, default=uuid.uuid4
    )
    landlord_id: Mapped[str] = mapped_column(String(64), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    monthly_rent: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    bedrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_leased: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    num_applicants: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (Index("ix_properties_landlord", "landlord_id"),)

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, landlord_id={self.landlord_id})>"
