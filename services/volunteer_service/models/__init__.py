"""Volunteer Service models package."""

from services.volunteer_service.models.core import (
    ZERO_HOURS,
    BadgeSet,
    VolunteerHoursSubmission,
    VolunteerProfile,
)
from services.volunteer_service.models.enums import (
    SOCIAL_BUTTERFLY_BADGE,
    ReviewDecision,
    ServiceType,
    SubmissionStatus,
    TierLabel,
)

__all__ = [
    "BadgeSet",
    "ReviewDecision",
    "SOCIAL_BUTTERFLY_BADGE",
    "ServiceType",
    "SubmissionStatus",
    "TierLabel",
    "VolunteerHoursSubmission",
    "VolunteerProfile",
    "ZERO_HOURS",
]
