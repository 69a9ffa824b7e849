"""Pydantic schemas for the Volunteer Service."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from services.volunteer_service.models import (
    ReviewDecision,
    ServiceType,
    SubmissionStatus,
    TierLabel,
)


def _sorted_badges(value):
    if value is None:
        return []
    return sorted(value)


# ============================================================================
# PROFILE SCHEMAS
# ============================================================================


class VolunteerRegister(BaseModel):
    full_name: str = Field(..., max_length=200)
    email: Optional[EmailStr] = None
    school_organization: Optional[str] = None
    phone_number: Optional[str] = None
    referred_by: Optional[str] = Field(None, description="Referral code of an existing volunteer")


class VolunteerProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    school_organization: Optional[str] = None
    phone_number: Optional[str] = None


class VolunteerProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    auth_id: str
    full_name: str
    email: Optional[str] = None
    school_organization: Optional[str] = None
    phone_number: Optional[str] = None
    total_hours: float
    this_year_hours: float
    hours_year: int
    tier: TierLabel
    badges: list[str] = []
    referral_code: str
    referred_by: Optional[str] = None
    referral_count: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("badges", mode="before")
    @classmethod
    def sort_badges(cls, value):
        return _sorted_badges(value)


# ============================================================================
# SUBMISSION SCHEMAS
# ============================================================================


class SubmissionCreate(BaseModel):
    activity_name: str = Field(..., max_length=200)
    service_date: date
    service_type: ServiceType
    hours: Decimal
    description: str
    proof_reference: Optional[str] = None
    is_historical: bool = False


class SubmissionUpdate(BaseModel):
    activity_name: Optional[str] = Field(None, max_length=200)
    service_date: Optional[date] = None
    service_type: Optional[ServiceType] = None
    hours: Optional[Decimal] = None
    description: Optional[str] = None
    proof_reference: Optional[str] = None
    is_historical: Optional[bool] = None


class ReviewRequest(BaseModel):
    decision: ReviewDecision
    rejection_reason: Optional[str] = None


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    volunteer_id: uuid.UUID
    activity_name: str
    service_date: date
    service_type: ServiceType
    hours: float
    description: str
    proof_reference: Optional[str] = None
    is_historical: bool
    status: SubmissionStatus
    rejection_reason: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    submitted_at: datetime
    updated_at: datetime


# ============================================================================
# DASHBOARD & STATS SCHEMAS
# ============================================================================


class DashboardResponse(BaseModel):
    profile: VolunteerProfileResponse
    total_hours: float
    this_year_hours: float
    tier: TierLabel
    hours_to_next_tier: Optional[float] = None
    badges: list[str] = []
    referral_code: str
    referral_count: int
    pending_count: int = 0
    approved_count: int = 0
    rejected_count: int = 0
    recent_submissions: list[SubmissionResponse] = []

    @field_validator("badges", mode="before")
    @classmethod
    def sort_badges(cls, value):
        return _sorted_badges(value)


class TierCount(BaseModel):
    tier: TierLabel
    count: int


class StatsResponse(BaseModel):
    total_volunteers: int
    active_volunteers: int
    total_approved_hours: float
    pending_submissions: int
    tier_distribution: list[TierCount]
