import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.volunteer_service.models.enums import (
    ServiceType,
    SubmissionStatus,
    TierLabel,
    enum_values,
)
from sqlalchemy import JSON, Boolean, Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, TypeDecorator, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

ZERO_HOURS = Decimal("0.00")


class BadgeSet(TypeDecorator):
    """A set of badge labels stored as a sorted JSON array.

    Loads as a ``frozenset`` so membership is unique by construction and a
    badge can only be added by assigning a new set (which SQLAlchemy tracks).
    """

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return []
        return sorted(set(value))

    def process_result_value(self, value, dialect):
        return frozenset(value or ())


# ============================================================================
# MODELS
# ============================================================================


class VolunteerProfile(Base):
    """A volunteer and their accrued hours, tier and badges."""

    __tablename__ = "volunteer_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    auth_id: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(254), nullable=True)
    school_organization: Mapped[Optional[str]] = mapped_column(
        String(200), nullable=True
    )
    phone_number: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    # Aggregates, maintained incrementally by the accrual reconciler
    total_hours: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=ZERO_HOURS, nullable=False
    )
    this_year_hours: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=ZERO_HOURS, nullable=False
    )
    hours_year: Mapped[int] = mapped_column(
        Integer, default=lambda: utc_now().year, nullable=False
    )
    tier: Mapped[TierLabel] = mapped_column(
        SAEnum(
            TierLabel,
            name="volunteer_tier_label",
            values_callable=enum_values,
            create_constraint=False,
        ),
        default=TierLabel.NONE,
        nullable=False,
    )
    badges: Mapped[frozenset] = mapped_column(
        BadgeSet, default=frozenset, nullable=False
    )

    # Referrals
    referral_code: Mapped[str] = mapped_column(String(16), unique=True, index=True)
    referred_by: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    referral_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    submissions: Mapped[list["VolunteerHoursSubmission"]] = relationship(
        back_populates="volunteer"
    )

    # Concurrent read-modify-write of the aggregates raises StaleDataError
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<VolunteerProfile {self.id} tier={self.tier.value} hours={self.total_hours}>"


class VolunteerHoursSubmission(Base):
    """A volunteer's claim of service hours for one activity and date."""

    __tablename__ = "volunteer_hours_submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    volunteer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("volunteer_profiles.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    activity_name: Mapped[str] = mapped_column(String(200), nullable=False)
    service_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    service_type: Mapped[ServiceType] = mapped_column(
        SAEnum(
            ServiceType,
            name="service_type",
            values_callable=enum_values,
            create_constraint=False,
        ),
        nullable=False,
    )
    hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    proof_reference: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_historical: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[SubmissionStatus] = mapped_column(
        SAEnum(
            SubmissionStatus,
            name="submission_status",
            values_callable=enum_values,
            create_constraint=False,
        ),
        default=SubmissionStatus.PENDING,
        nullable=False,
        index=True,
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    volunteer: Mapped["VolunteerProfile"] = relationship(back_populates="submissions")

    def __repr__(self) -> str:
        return f"<VolunteerHoursSubmission {self.id} hours={self.hours} status={self.status.value}>"
