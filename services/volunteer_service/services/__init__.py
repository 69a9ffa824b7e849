"""Volunteer Service business logic package."""

from services.volunteer_service.services.accrual import (
    DEFAULT_TIER_THRESHOLDS,
    AccrualReconciler,
    TierThreshold,
    default_reconciler,
    hours_to_next_tier,
    tier_for,
    tier_rank,
)
from services.volunteer_service.services.lifecycle import (
    edit_before_review,
    get_submission,
    list_my_submissions,
    list_pending_submissions,
    return_to_pending,
    review,
    submit,
)
from services.volunteer_service.services.registration import (
    get_my_profile,
    register_volunteer,
    update_my_profile,
)
from services.volunteer_service.services.reporting import (
    get_volunteer,
    list_volunteers,
    recompute_volunteer,
    volunteer_dashboard,
    volunteer_stats,
)
from services.volunteer_service.services.unit_of_work import HoursRepository, UnitOfWork

__all__ = [
    "DEFAULT_TIER_THRESHOLDS",
    "AccrualReconciler",
    "HoursRepository",
    "TierThreshold",
    "UnitOfWork",
    "default_reconciler",
    "edit_before_review",
    "get_my_profile",
    "get_submission",
    "get_volunteer",
    "hours_to_next_tier",
    "list_my_submissions",
    "list_pending_submissions",
    "list_volunteers",
    "recompute_volunteer",
    "register_volunteer",
    "return_to_pending",
    "review",
    "submit",
    "tier_for",
    "tier_rank",
    "update_my_profile",
    "volunteer_dashboard",
    "volunteer_stats",
]
