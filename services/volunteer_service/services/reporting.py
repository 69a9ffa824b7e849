"""Read-side views: the volunteer dashboard and admin reporting."""

import uuid
from decimal import Decimal
from typing import Any, Optional

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import ForbiddenError, NotFoundError
from libs.common.logging import get_logger
from services.volunteer_service.models import (
    ZERO_HOURS,
    SubmissionStatus,
    TierLabel,
    VolunteerHoursSubmission,
    VolunteerProfile,
)
from services.volunteer_service.services.accrual import (
    AccrualReconciler,
    default_reconciler,
)
from services.volunteer_service.services.unit_of_work import (
    HoursRepository,
    UnitOfWork,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def _require_admin(actor: AuthUser, action: str) -> None:
    if not actor.is_admin:
        raise ForbiddenError(f"Only administrators can {action}")


async def volunteer_dashboard(
    db: AsyncSession,
    actor: AuthUser,
    *,
    recent_limit: Optional[int] = None,
    reconciler: Optional[AccrualReconciler] = None,
) -> dict[str, Any]:
    """Profile, progress toward the next tier and recent submissions."""
    reconciler = reconciler or default_reconciler
    recent_limit = recent_limit or get_settings().DASHBOARD_RECENT_LIMIT

    async def _dashboard(repo: HoursRepository) -> dict[str, Any]:
        profile = await repo.load_volunteer_by_auth_id(actor.user_id)
        if not profile:
            raise NotFoundError("Volunteer profile not found. Register first.")

        counts_q = (
            select(VolunteerHoursSubmission.status, func.count())
            .where(VolunteerHoursSubmission.volunteer_id == profile.id)
            .group_by(VolunteerHoursSubmission.status)
        )
        counts = {status: count for status, count in (await repo.db.execute(counts_q)).all()}

        recent_q = (
            select(VolunteerHoursSubmission)
            .where(VolunteerHoursSubmission.volunteer_id == profile.id)
            .order_by(VolunteerHoursSubmission.submitted_at.desc())
            .limit(recent_limit)
        )
        recent = list((await repo.db.execute(recent_q)).scalars().all())

        # A stale year bucket reads as zero until the next approval rolls it
        this_year_hours = (
            profile.this_year_hours
            if profile.hours_year == reconciler.current_year()
            else ZERO_HOURS
        )
        return {
            "profile": profile,
            "total_hours": profile.total_hours,
            "this_year_hours": this_year_hours,
            "tier": profile.tier,
            "hours_to_next_tier": reconciler.hours_to_next_tier(profile.total_hours),
            "badges": sorted(profile.badges or ()),
            "referral_code": profile.referral_code,
            "referral_count": profile.referral_count,
            "pending_count": counts.get(SubmissionStatus.PENDING, 0),
            "approved_count": counts.get(SubmissionStatus.APPROVED, 0),
            "rejected_count": counts.get(SubmissionStatus.REJECTED, 0),
            "recent_submissions": recent,
        }

    return await UnitOfWork(db).read(_dashboard)


async def list_volunteers(
    db: AsyncSession,
    actor: AuthUser,
    *,
    tier: Optional[TierLabel] = None,
    active_only: bool = False,
    skip: int = 0,
    limit: int = 50,
) -> list[VolunteerProfile]:
    """Admin roster, highest total hours first."""
    _require_admin(actor, "list volunteers")

    async def _list(repo: HoursRepository) -> list[VolunteerProfile]:
        q = select(VolunteerProfile).order_by(
            VolunteerProfile.total_hours.desc(), VolunteerProfile.full_name
        )
        if tier:
            q = q.where(VolunteerProfile.tier == tier)
        if active_only:
            q = q.where(VolunteerProfile.is_active.is_(True))
        q = q.offset(skip).limit(limit)
        return list((await repo.db.execute(q)).scalars().all())

    return await UnitOfWork(db).read(_list)


async def get_volunteer(
    db: AsyncSession, actor: AuthUser, volunteer_id: uuid.UUID
) -> VolunteerProfile:
    _require_admin(actor, "view volunteer profiles")

    async def _get(repo: HoursRepository) -> VolunteerProfile:
        profile = await repo.load_volunteer(volunteer_id)
        if not profile:
            raise NotFoundError("Volunteer profile not found")
        return profile

    return await UnitOfWork(db).read(_get)


async def volunteer_stats(db: AsyncSession, actor: AuthUser) -> dict[str, Any]:
    """Program-wide totals for the admin dashboard."""
    _require_admin(actor, "view volunteer stats")

    async def _stats(repo: HoursRepository) -> dict[str, Any]:
        total_volunteers = (
            await repo.db.execute(select(func.count()).select_from(VolunteerProfile))
        ).scalar_one()
        active_volunteers = (
            await repo.db.execute(
                select(func.count())
                .select_from(VolunteerProfile)
                .where(VolunteerProfile.is_active.is_(True))
            )
        ).scalar_one()
        total_hours = (
            await repo.db.execute(select(func.sum(VolunteerProfile.total_hours)))
        ).scalar_one()
        pending = (
            await repo.db.execute(
                select(func.count())
                .select_from(VolunteerHoursSubmission)
                .where(VolunteerHoursSubmission.status == SubmissionStatus.PENDING)
            )
        ).scalar_one()
        tier_rows = (
            await repo.db.execute(
                select(VolunteerProfile.tier, func.count()).group_by(
                    VolunteerProfile.tier
                )
            )
        ).all()
        by_tier = {tier: count for tier, count in tier_rows}

        return {
            "total_volunteers": total_volunteers,
            "active_volunteers": active_volunteers,
            "total_approved_hours": Decimal(str(total_hours or 0)).quantize(
                Decimal("0.01")
            ),
            "pending_submissions": pending,
            "tier_distribution": [
                {"tier": label, "count": by_tier.get(label, 0)} for label in TierLabel
            ],
        }

    return await UnitOfWork(db).read(_stats)


async def recompute_volunteer(
    db: AsyncSession,
    actor: AuthUser,
    volunteer_id: uuid.UUID,
    *,
    reconciler: Optional[AccrualReconciler] = None,
) -> VolunteerProfile:
    """Rebuild a volunteer's aggregates from their approved submissions."""
    _require_admin(actor, "recompute volunteer totals")
    reconciler = reconciler or default_reconciler

    async def _recompute(repo: HoursRepository) -> VolunteerProfile:
        profile = await repo.load_volunteer(volunteer_id, for_update=True)
        if not profile:
            raise NotFoundError("Volunteer profile not found")
        approved = await repo.load_approved_submissions(profile.id)
        reconciler.recompute(profile, approved)
        await repo.save_volunteer(profile)
        return profile

    profile = await UnitOfWork(db).execute(_recompute)
    logger.info("Recomputed aggregates for volunteer %s by %s", profile.id, actor.user_id)
    return profile
