"""Submission lifecycle: submit, review, edit and return-to-pending.

State machine::

    pending --review--> approved | rejected
    approved <--review--> rejected
    approved | rejected --return_to_pending--> pending   (admin only)

Hours count toward the owning volunteer only while a submission is
``approved``. Every transition into or out of ``approved`` goes through the
accrual reconciler and is committed in the same unit of work as the
submission itself.
"""

import uuid
from datetime import date
from typing import Any, Optional

from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.errors import ForbiddenError, NotFoundError, ValidationError
from libs.common.logging import get_logger
from services.volunteer_service.models import (
    ReviewDecision,
    SubmissionStatus,
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
from services.volunteer_service.services.validation import (
    clean_hours,
    clean_optional_text,
    clean_service_date,
    clean_service_type,
    clean_text,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
EDITABLE_FIELDS = frozenset(
    {
        "activity_name",
        "service_date",
        "service_type",
        "hours",
        "description",
        "proof_reference",
        "is_historical",
    }
)
ACCRUAL_FIELDS = frozenset({"hours", "service_date"})


# ── Helpers ─────────────────────────────────────────────────────────


async def _require_volunteer(repo: HoursRepository, actor: AuthUser) -> VolunteerProfile:
    volunteer = await repo.load_volunteer_by_auth_id(actor.user_id)
    if not volunteer:
        raise NotFoundError("Volunteer profile not found. Register first.")
    return volunteer


async def _require_submission(
    repo: HoursRepository, submission_id: uuid.UUID, *, for_update: bool = False
) -> VolunteerHoursSubmission:
    submission = await repo.load_submission(submission_id, for_update=for_update)
    if not submission:
        raise NotFoundError("Hours submission not found")
    return submission


async def _require_owner_volunteer(
    repo: HoursRepository, submission: VolunteerHoursSubmission
) -> VolunteerProfile:
    volunteer = await repo.load_volunteer(submission.volunteer_id, for_update=True)
    if not volunteer:
        raise NotFoundError("Volunteer profile not found")
    return volunteer


def _require_admin(actor: AuthUser, action: str) -> None:
    if not actor.is_admin:
        raise ForbiddenError(f"Only administrators can {action}")


def _clear_review(submission: VolunteerHoursSubmission) -> None:
    submission.status = SubmissionStatus.PENDING
    submission.reviewed_at = None
    submission.reviewed_by = None
    submission.rejection_reason = None


def _parse_decision(decision: Any) -> ReviewDecision:
    try:
        return ReviewDecision(decision)
    except ValueError:
        raise ValidationError(
            "Decision must be 'approved' or 'rejected'",
            details={"field": "decision"},
        )


def clean_patch(patch: dict[str, Any]) -> dict[str, Any]:
    """Validate an edit patch with the same rules as ``submit``."""
    unknown = set(patch) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(
            "These fields cannot be edited: " + ", ".join(sorted(unknown)),
            details={"fields": sorted(unknown)},
        )
    if not patch:
        raise ValidationError("Nothing to update")

    cleaned: dict[str, Any] = {}
    for field, value in patch.items():
        if field == "hours":
            cleaned[field] = clean_hours(value)
        elif field == "service_date":
            cleaned[field] = clean_service_date(value)
        elif field == "service_type":
            cleaned[field] = clean_service_type(value)
        elif field == "activity_name":
            cleaned[field] = clean_text(value, field, max_length=200)
        elif field == "description":
            cleaned[field] = clean_text(value, field)
        elif field == "proof_reference":
            cleaned[field] = clean_optional_text(value, field)
        elif field == "is_historical":
            cleaned[field] = bool(value)
    return cleaned


# ── Transitions ─────────────────────────────────────────────────────


async def submit(
    db: AsyncSession,
    actor: AuthUser,
    *,
    activity_name: str,
    service_date: Any,
    service_type: Any,
    hours: Any,
    description: str,
    proof_reference: Optional[str] = None,
    is_historical: bool = False,
) -> VolunteerHoursSubmission:
    """Create a pending submission for the actor's own volunteer profile."""
    fields = {
        "activity_name": clean_text(activity_name, "activity_name", max_length=200),
        "service_date": clean_service_date(service_date),
        "service_type": clean_service_type(service_type),
        "hours": clean_hours(hours),
        "description": clean_text(description, "description"),
        "proof_reference": clean_optional_text(proof_reference, "proof_reference"),
        "is_historical": bool(is_historical),
    }

    async def _submit(repo: HoursRepository) -> VolunteerHoursSubmission:
        volunteer = await _require_volunteer(repo, actor)
        submission = VolunteerHoursSubmission(
            volunteer_id=volunteer.id,
            status=SubmissionStatus.PENDING,
            **fields,
        )
        await repo.save_submission(submission)
        return submission

    submission = await UnitOfWork(db).execute(_submit)
    logger.info(
        "Volunteer %s submitted %s hours (submission %s)",
        submission.volunteer_id,
        submission.hours,
        submission.id,
    )
    return submission


async def review(
    db: AsyncSession,
    reviewer: AuthUser,
    submission_id: uuid.UUID,
    decision: Any,
    rejection_reason: Optional[str] = None,
    *,
    reconciler: Optional[AccrualReconciler] = None,
) -> VolunteerHoursSubmission:
    """Approve or reject a submission, reconciling the volunteer's aggregates.

    Re-applying the submission's current status is a no-op, so a repeated
    approval never counts the hours twice.
    """
    _require_admin(reviewer, "review hours")
    decision = _parse_decision(decision)
    reason = (rejection_reason or "").strip()
    if decision == ReviewDecision.REJECTED and not reason:
        raise ValidationError(
            "A rejection reason is required",
            details={"field": "rejection_reason"},
        )
    reconciler = reconciler or default_reconciler
    target = SubmissionStatus(decision.value)

    async def _review(repo: HoursRepository) -> VolunteerHoursSubmission:
        submission = await _require_submission(repo, submission_id, for_update=True)
        if submission.status == target:
            logger.info(
                "Submission %s already %s, nothing to do", submission.id, target.value
            )
            return submission

        volunteer = await _require_owner_volunteer(repo, submission)
        if submission.status == SubmissionStatus.APPROVED:
            reconciler.reverse_approval(volunteer, submission)

        if target == SubmissionStatus.APPROVED:
            reconciler.apply_approval(volunteer, submission)
            submission.rejection_reason = None
        else:
            submission.rejection_reason = reason

        previous = submission.status
        submission.status = target
        submission.reviewed_at = utc_now()
        submission.reviewed_by = reviewer.user_id
        await repo.save_both(submission, volunteer)
        logger.info(
            "Submission %s %s -> %s by %s",
            submission.id,
            previous.value,
            target.value,
            reviewer.user_id,
        )
        return submission

    return await UnitOfWork(db).execute(_review)


async def return_to_pending(
    db: AsyncSession,
    actor: AuthUser,
    submission_id: uuid.UUID,
    *,
    reconciler: Optional[AccrualReconciler] = None,
) -> VolunteerHoursSubmission:
    """Administratively reopen a reviewed submission, undoing any accrual."""
    _require_admin(actor, "reopen a reviewed submission")
    reconciler = reconciler or default_reconciler

    async def _reopen(repo: HoursRepository) -> VolunteerHoursSubmission:
        submission = await _require_submission(repo, submission_id, for_update=True)
        if submission.status == SubmissionStatus.PENDING:
            return submission

        volunteer = await _require_owner_volunteer(repo, submission)
        if submission.status == SubmissionStatus.APPROVED:
            reconciler.reverse_approval(volunteer, submission)
        _clear_review(submission)
        await repo.save_both(submission, volunteer)
        logger.info("Submission %s returned to pending by %s", submission.id, actor.user_id)
        return submission

    return await UnitOfWork(db).execute(_reopen)


async def edit_before_review(
    db: AsyncSession,
    actor: AuthUser,
    submission_id: uuid.UUID,
    patch: dict[str, Any],
    *,
    reconciler: Optional[AccrualReconciler] = None,
) -> VolunteerHoursSubmission:
    """Edit a submission.

    Owners may edit only while the submission is pending. Administrators may
    edit in any status; changing the hours or service date of an approved
    submission reverses its accrual and sends it back to pending for a fresh
    review.
    """
    changes = clean_patch(patch)
    reconciler = reconciler or default_reconciler

    async def _edit(repo: HoursRepository) -> VolunteerHoursSubmission:
        submission = await _require_submission(repo, submission_id, for_update=True)
        volunteer = await _require_owner_volunteer(repo, submission)

        if not actor.is_admin:
            if volunteer.auth_id != actor.user_id:
                raise ForbiddenError("You can only edit your own submissions")
            if submission.status != SubmissionStatus.PENDING:
                raise ForbiddenError("Only pending submissions can be edited")

        touches_accrual = any(
            field in changes and changes[field] != getattr(submission, field)
            for field in ACCRUAL_FIELDS
        )
        if submission.status == SubmissionStatus.APPROVED and touches_accrual:
            # Reverse with the old hours/date before they are overwritten
            reconciler.reverse_approval(volunteer, submission)
            _clear_review(submission)
            logger.info(
                "Submission %s reopened by %s after editing accrued fields",
                submission.id,
                actor.user_id,
            )

        for field, value in changes.items():
            setattr(submission, field, value)
        await repo.save_both(submission, volunteer)
        return submission

    return await UnitOfWork(db).execute(_edit)


# ── Queries ─────────────────────────────────────────────────────────


async def get_submission(
    db: AsyncSession, actor: AuthUser, submission_id: uuid.UUID
) -> VolunteerHoursSubmission:
    async def _get(repo: HoursRepository) -> VolunteerHoursSubmission:
        submission = await _require_submission(repo, submission_id)
        if actor.is_admin:
            return submission
        volunteer = await repo.load_volunteer(submission.volunteer_id)
        if not volunteer or volunteer.auth_id != actor.user_id:
            raise ForbiddenError("You can only view your own submissions")
        return submission

    return await UnitOfWork(db).read(_get)


async def list_my_submissions(
    db: AsyncSession,
    actor: AuthUser,
    *,
    status: Optional[SubmissionStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[VolunteerHoursSubmission]:
    """The actor's submission history, newest first."""

    async def _list(repo: HoursRepository) -> list[VolunteerHoursSubmission]:
        volunteer = await _require_volunteer(repo, actor)
        q = (
            select(VolunteerHoursSubmission)
            .where(VolunteerHoursSubmission.volunteer_id == volunteer.id)
            .order_by(VolunteerHoursSubmission.submitted_at.desc())
        )
        if status:
            q = q.where(VolunteerHoursSubmission.status == status)
        if start_date:
            q = q.where(VolunteerHoursSubmission.service_date >= start_date)
        if end_date:
            q = q.where(VolunteerHoursSubmission.service_date <= end_date)
        return list((await repo.db.execute(q)).scalars().all())

    return await UnitOfWork(db).read(_list)


async def list_pending_submissions(
    db: AsyncSession,
    reviewer: AuthUser,
    *,
    skip: int = 0,
    limit: int = 50,
) -> list[VolunteerHoursSubmission]:
    """Review queue, oldest first."""
    _require_admin(reviewer, "view the review queue")

    async def _list(repo: HoursRepository) -> list[VolunteerHoursSubmission]:
        q = (
            select(VolunteerHoursSubmission)
            .where(VolunteerHoursSubmission.status == SubmissionStatus.PENDING)
            .order_by(VolunteerHoursSubmission.submitted_at.asc())
            .offset(skip)
            .limit(limit)
        )
        return list((await repo.db.execute(q)).scalars().all())

    return await UnitOfWork(db).read(_list)
