"""create_volunteer_hours_tables

Revision ID: b7c1d2e3f401
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "b7c1d2e3f401"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TIER_LABELS = (
    "None",
    "Kindness Ambassador",
    "Change Catalyst",
    "Service Champion",
    "Legacy Leader",
)
SERVICE_TYPES = (
    "service_projects",
    "community_events",
    "food_rescues",
    "tutoring",
    "notes_of_kindness",
    "workshops",
    "donations",
    "other",
)
SUBMISSION_STATUSES = ("pending", "approved", "rejected")


def upgrade() -> None:
    """Upgrade schema - Add volunteer profile and hours submission tables."""

    op.create_table(
        "volunteer_profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("auth_id", sa.String(length=128), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=True),
        sa.Column("school_organization", sa.String(length=200), nullable=True),
        sa.Column("phone_number", sa.String(length=40), nullable=True),
        sa.Column("total_hours", sa.Numeric(10, 2), server_default="0", nullable=False),
        sa.Column(
            "this_year_hours", sa.Numeric(10, 2), server_default="0", nullable=False
        ),
        sa.Column("hours_year", sa.Integer(), nullable=False),
        sa.Column(
            "tier",
            sa.Enum(*TIER_LABELS, name="volunteer_tier_label"),
            server_default="None",
            nullable=False,
        ),
        sa.Column("badges", sa.JSON(), nullable=False),
        sa.Column("referral_code", sa.String(length=16), nullable=False),
        sa.Column("referred_by", sa.String(length=16), nullable=True),
        sa.Column("referral_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_volunteer_profiles_auth_id", "volunteer_profiles", ["auth_id"], unique=True
    )
    op.create_index(
        "ix_volunteer_profiles_referral_code",
        "volunteer_profiles",
        ["referral_code"],
        unique=True,
    )

    op.create_table(
        "volunteer_hours_submissions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("volunteer_id", sa.Uuid(), nullable=False),
        sa.Column("activity_name", sa.String(length=200), nullable=False),
        sa.Column("service_date", sa.Date(), nullable=False),
        sa.Column(
            "service_type",
            sa.Enum(*SERVICE_TYPES, name="service_type"),
            nullable=False,
        ),
        sa.Column("hours", sa.Numeric(8, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("proof_reference", sa.String(length=500), nullable=True),
        sa.Column(
            "is_historical", sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        sa.Column(
            "status",
            sa.Enum(*SUBMISSION_STATUSES, name="submission_status"),
            server_default="pending",
            nullable=False,
        ),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.String(length=128), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["volunteer_id"], ["volunteer_profiles.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_volunteer_hours_submissions_volunteer_id",
        "volunteer_hours_submissions",
        ["volunteer_id"],
    )
    op.create_index(
        "ix_volunteer_hours_submissions_service_date",
        "volunteer_hours_submissions",
        ["service_date"],
    )
    op.create_index(
        "ix_volunteer_hours_submissions_status",
        "volunteer_hours_submissions",
        ["status"],
    )


def downgrade() -> None:
    """Downgrade schema - Drop volunteer hours tables."""
    op.drop_table("volunteer_hours_submissions")
    op.drop_table("volunteer_profiles")
    sa.Enum(name="submission_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="service_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="volunteer_tier_label").drop(op.get_bind(), checkfirst=True)
