"""Initial schema for the Casaya rental backend

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Creates all tables for:
- Tenants and properties
- Application documents (pointers into the object store)
- Verification (snapshots, provider sessions)
- Applications and their notes
"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# SQLAlchemy persists enum member names
VERIFICATION_STATES = ("NOT_STARTED", "IN_PROGRESS", "PENDING", "VERIFIED", "FAILED")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()),
    ]


def _snapshot_field(name: str) -> list[sa.Column]:
    return [
        sa.Column(f"{name}_state", sa.Enum(*VERIFICATION_STATES, name="verificationstate"), nullable=False, server_default="NOT_STARTED"),
        sa.Column(f"{name}_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(f"{name}_checked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(f"{name}_version", sa.Integer(), nullable=False, server_default="0"),
    ]


def upgrade() -> None:
    """Create all tables."""

    # tenants - keyed by the identity provider's principal id
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("first_name", sa.String(120), nullable=True),
        sa.Column("last_name", sa.String(120), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("ssn", sa.String(11), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("current_address", sa.String(500), nullable=True),
        sa.Column("employment_history_years", sa.Float(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # properties
    op.create_table(
        "properties",
        sa.Column("id", sa.CHAR(36), nullable=False),
        sa.Column("landlord_id", sa.String(64), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("monthly_rent", sa.Numeric(12, 2), nullable=False),
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("bathrooms", sa.Integer(), nullable=True),
        sa.Column("is_leased", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("num_applicants", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_properties_landlord", "properties", ["landlord_id"])

    # application_documents
    op.create_table(
        "application_documents",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.CHAR(36), nullable=False),
        sa.Column("doc_type", sa.Enum("ID", "BANK_STATEMENT", "FORM410", name="documenttype"), nullable=False),
        sa.Column("blob_ref", sa.String(1024), nullable=False),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=True),
        sa.Column("content_type", sa.String(255), nullable=True),
        sa.Column("size_bytes", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("application_id", "doc_type", name="uq_application_doc"),
    )
    op.create_index("ix_application_documents_owner", "application_documents", ["owner_id"])

    # verification_snapshots - one row per tenant
    op.create_table(
        "verification_snapshots",
        sa.Column("tenant_id", sa.String(64), nullable=False),
        *_snapshot_field("identity"),
        *_snapshot_field("bank_account"),
        *_snapshot_field("income"),
        *_snapshot_field("background"),
        sa.Column("verified_income", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("credit_score", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("tenant_id"),
    )

    # verification_sessions - adapter-owned provider state
    op.create_table(
        "verification_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("provider", sa.Enum("IDENTITY", "BANK_ACCOUNT", "INCOME", "BACKGROUND", name="provider"), nullable=False),
        sa.Column("state", sa.Enum(*VERIFICATION_STATES, name="verificationstate"), nullable=False, server_default="NOT_STARTED"),
        sa.Column("session_token", sa.String(255), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("access_token", sa.String(255), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("value", sa.Float(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "provider", name="uq_session_tenant_provider"),
    )
    op.create_index("ix_verification_sessions_state", "verification_sessions", ["state"])

    # applications
    op.create_table(
        "applications",
        sa.Column("id", sa.CHAR(36), nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("property_id", sa.CHAR(36), nullable=False),
        sa.Column("landlord_id", sa.String(64), nullable=False),
        sa.Column("status", sa.Enum("PENDING", "APPROVED", "REJECTED", name="applicationstatus"), nullable=False, server_default="PENDING"),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pending_key", sa.String(128), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("pending_key"),
    )
    op.create_index("ix_applications_tenant_status", "applications", ["tenant_id", "status"])
    op.create_index("ix_applications_landlord_status", "applications", ["landlord_id", "status"])
    op.create_index("ix_applications_property", "applications", ["property_id"])

    # application_notes
    op.create_table(
        "application_notes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.CHAR(36), nullable=False),
        sa.Column("creator_type", sa.Enum("TENANT", "LANDLORD", name="notecreatortype"), nullable=False),
        sa.Column("creator_id", sa.String(64), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_application_notes_application", "application_notes", ["application_id"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("application_notes")
    op.drop_table("applications")
    op.drop_table("verification_sessions")
    op.drop_table("verification_snapshots")
    op.drop_table("application_documents")
    op.drop_table("properties")
    op.drop_table("tenants")
