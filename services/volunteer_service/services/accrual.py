"""Accrual reconciler: keeps a volunteer's aggregates in step with approvals.

Approved hours are applied to ``total_hours`` and (when the service date is in
the current calendar year) ``this_year_hours`` as deltas. The tier is always
derived from ``total_hours`` through ``tier_for``. Badges are a one-way
ratchet: they are added on tier-up or referral milestones and never removed.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.volunteer_service.models import (
    SOCIAL_BUTTERFLY_BADGE,
    ZERO_HOURS,
    SubmissionStatus,
    TierLabel,
    VolunteerHoursSubmission,
    VolunteerProfile,
)

logger = get_logger(__name__)

Hours = Union[Decimal, int, float]


@dataclass(frozen=True)
class TierThreshold:
    label: TierLabel
    min_hours: Decimal


# Inclusive lower bounds, ascending.
DEFAULT_TIER_THRESHOLDS: tuple[TierThreshold, ...] = (
    TierThreshold(TierLabel.NONE, Decimal("0")),
    TierThreshold(TierLabel.KINDNESS_AMBASSADOR, Decimal("50")),
    TierThreshold(TierLabel.CHANGE_CATALYST, Decimal("100")),
    TierThreshold(TierLabel.SERVICE_CHAMPION, Decimal("150")),
    TierThreshold(TierLabel.LEGACY_LEADER, Decimal("250")),
)


def _as_hours(value: Optional[Hours]) -> Decimal:
    if value is None:
        return ZERO_HOURS
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def tier_for(
    total_hours: Hours,
    thresholds: tuple[TierThreshold, ...] = DEFAULT_TIER_THRESHOLDS,
) -> TierLabel:
    """Highest tier whose minimum is met by ``total_hours``."""
    hours = _as_hours(total_hours)
    label = thresholds[0].label
    for threshold in thresholds:
        if hours >= threshold.min_hours:
            label = threshold.label
    return label


def tier_rank(
    label: TierLabel,
    thresholds: tuple[TierThreshold, ...] = DEFAULT_TIER_THRESHOLDS,
) -> int:
    for rank, threshold in enumerate(thresholds):
        if threshold.label == label:
            return rank
    raise ValueError(f"Unknown tier {label!r}")


def hours_to_next_tier(
    total_hours: Hours,
    thresholds: tuple[TierThreshold, ...] = DEFAULT_TIER_THRESHOLDS,
) -> Optional[Decimal]:
    """Hours until the next tier, or None at the top tier."""
    hours = _as_hours(total_hours)
    for threshold in thresholds:
        if hours < threshold.min_hours:
            return threshold.min_hours - hours
    return None


class AccrualReconciler:
    """Applies and reverses approved-submission deltas on a volunteer.

    Mutates the ``VolunteerProfile`` in memory only; the caller persists it
    together with the submission in one unit of work.
    """

    def __init__(
        self,
        thresholds: Iterable[TierThreshold] = DEFAULT_TIER_THRESHOLDS,
        clock: Callable[[], datetime] = utc_now,
        referral_badge_threshold: Optional[int] = None,
    ):
        thresholds = tuple(sorted(thresholds, key=lambda t: t.min_hours))
        if not thresholds:
            raise ValueError("At least one tier threshold is required")
        if len({t.min_hours for t in thresholds}) != len(thresholds):
            raise ValueError("Tier thresholds must be distinct")
        self.thresholds = thresholds
        self._clock = clock
        self.referral_badge_threshold = (
            get_settings().REFERRAL_BADGE_THRESHOLD
            if referral_badge_threshold is None
            else referral_badge_threshold
        )

    def current_year(self) -> int:
        return self._clock().year

    def tier_for(self, total_hours: Hours) -> TierLabel:
        return tier_for(total_hours, self.thresholds)

    def hours_to_next_tier(self, total_hours: Hours) -> Optional[Decimal]:
        return hours_to_next_tier(total_hours, self.thresholds)

    # ── Year bucket ─────────────────────────────────────────────────

    def roll_year(self, volunteer: VolunteerProfile) -> None:
        """Reset ``this_year_hours`` when the calendar year has moved on."""
        year = self.current_year()
        if volunteer.hours_year != year:
            logger.info(
                "Rolling year bucket for volunteer %s: %s -> %s (dropping %s hours)",
                volunteer.id,
                volunteer.hours_year,
                year,
                volunteer.this_year_hours,
            )
            volunteer.this_year_hours = ZERO_HOURS
            volunteer.hours_year = year

    def _counts_this_year(self, submission: VolunteerHoursSubmission) -> bool:
        return submission.service_date.year == self.current_year()

    # ── Badges ──────────────────────────────────────────────────────

    @staticmethod
    def grant_badge(volunteer: VolunteerProfile, badge: str) -> bool:
        """Union ``badge`` into the volunteer's badges. Returns True if new."""
        badges = frozenset(volunteer.badges or ())
        if badge in badges:
            return False
        volunteer.badges = badges | {badge}
        logger.info("Granted badge %r to volunteer %s", badge, volunteer.id)
        return True

    def apply_referral(self, referrer: VolunteerProfile) -> VolunteerProfile:
        """Count one successful referral; grant Social Butterfly at the threshold."""
        referrer.referral_count = (referrer.referral_count or 0) + 1
        if referrer.referral_count >= self.referral_badge_threshold:
            self.grant_badge(referrer, SOCIAL_BUTTERFLY_BADGE)
        logger.info(
            "Volunteer %s referral count is now %d",
            referrer.id,
            referrer.referral_count,
        )
        return referrer

    def _retier(self, volunteer: VolunteerProfile, grant: bool) -> TierLabel:
        previous = volunteer.tier or self.thresholds[0].label
        new_tier = self.tier_for(volunteer.total_hours)
        volunteer.tier = new_tier
        if (
            grant
            and new_tier != TierLabel.NONE
            and tier_rank(new_tier, self.thresholds)
            > tier_rank(previous, self.thresholds)
        ):
            self.grant_badge(volunteer, new_tier.value)
        if new_tier != previous:
            logger.info(
                "Volunteer %s tier %s -> %s", volunteer.id, previous.value, new_tier.value
            )
        return new_tier

    # ── Deltas ──────────────────────────────────────────────────────

    def apply_approval(
        self, volunteer: VolunteerProfile, submission: VolunteerHoursSubmission
    ) -> VolunteerProfile:
        """Credit an approved submission's hours to the volunteer."""
        hours = _as_hours(submission.hours)
        self.roll_year(volunteer)

        volunteer.total_hours = _as_hours(volunteer.total_hours) + hours
        if self._counts_this_year(submission):
            volunteer.this_year_hours = _as_hours(volunteer.this_year_hours) + hours

        self._retier(volunteer, grant=True)
        logger.info(
            "Applied %s hours from submission %s to volunteer %s (total=%s, this_year=%s)",
            hours,
            submission.id,
            volunteer.id,
            volunteer.total_hours,
            volunteer.this_year_hours,
        )
        return volunteer

    def reverse_approval(
        self, volunteer: VolunteerProfile, submission: VolunteerHoursSubmission
    ) -> VolunteerProfile:
        """Inverse of ``apply_approval``. Badges are left untouched."""
        hours = _as_hours(submission.hours)
        self.roll_year(volunteer)

        volunteer.total_hours = _as_hours(volunteer.total_hours) - hours
        if self._counts_this_year(submission):
            volunteer.this_year_hours = _as_hours(volunteer.this_year_hours) - hours

        self._retier(volunteer, grant=False)
        logger.info(
            "Reversed %s hours from submission %s on volunteer %s (total=%s, this_year=%s)",
            hours,
            submission.id,
            volunteer.id,
            volunteer.total_hours,
            volunteer.this_year_hours,
        )
        return volunteer

    def recompute(
        self,
        volunteer: VolunteerProfile,
        submissions: Iterable[VolunteerHoursSubmission],
    ) -> VolunteerProfile:
        """Rebuild the totals from scratch out of the approved submissions."""
        year = self.current_year()
        total = ZERO_HOURS
        this_year = ZERO_HOURS
        for submission in submissions:
            if submission.status != SubmissionStatus.APPROVED:
                continue
            hours = _as_hours(submission.hours)
            total += hours
            if submission.service_date.year == year:
                this_year += hours

        if total != _as_hours(volunteer.total_hours) or this_year != _as_hours(
            volunteer.this_year_hours
        ):
            logger.warning(
                "Volunteer %s aggregates drifted: total %s -> %s, this_year %s -> %s",
                volunteer.id,
                volunteer.total_hours,
                total,
                volunteer.this_year_hours,
                this_year,
            )

        volunteer.total_hours = total
        volunteer.this_year_hours = this_year
        volunteer.hours_year = year
        self._retier(volunteer, grant=True)
        return volunteer


default_reconciler = AccrualReconciler()
