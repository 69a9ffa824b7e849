"""Admin volunteer management endpoints."""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.volunteer_service.models import TierLabel
from services.volunteer_service.schemas import (
    ReviewRequest,
    StatsResponse,
    SubmissionResponse,
    SubmissionUpdate,
    VolunteerProfileResponse,
)
from services.volunteer_service.services import (
    edit_before_review,
    get_volunteer,
    list_pending_submissions,
    list_volunteers,
    recompute_volunteer,
    return_to_pending,
    review,
    volunteer_stats,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/volunteers", tags=["admin-volunteers"])


# ── Review queue ────────────────────────────────────────────────────


@router.get("/hours/pending", response_model=list[SubmissionResponse])
async def list_pending_hours(
    current_user: Annotated[AuthUser, Depends(require_admin)],
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_async_db),
):
    """Pending submissions, oldest first."""
    return await list_pending_submissions(db, current_user, skip=skip, limit=limit)


@router.post("/hours/{submission_id}/review", response_model=SubmissionResponse)
async def review_hours(
    submission_id: uuid.UUID,
    data: ReviewRequest,
    current_user: Annotated[AuthUser, Depends(require_admin)],
    db: AsyncSession = Depends(get_async_db),
):
    """Approve or reject a submission."""
    return await review(
        db, current_user, submission_id, data.decision, data.rejection_reason
    )


@router.post("/hours/{submission_id}/reset", response_model=SubmissionResponse)
async def reset_hours(
    submission_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(require_admin)],
    db: AsyncSession = Depends(get_async_db),
):
    """Send a reviewed submission back to pending."""
    return await return_to_pending(db, current_user, submission_id)


@router.patch("/hours/{submission_id}", response_model=SubmissionResponse)
async def admin_edit_hours(
    submission_id: uuid.UUID,
    data: SubmissionUpdate,
    current_user: Annotated[AuthUser, Depends(require_admin)],
    db: AsyncSession = Depends(get_async_db),
):
    return await edit_before_review(
        db, current_user, submission_id, data.model_dump(exclude_unset=True)
    )


# ── Profiles ────────────────────────────────────────────────────────


@router.get("/profiles", response_model=list[VolunteerProfileResponse])
async def list_profiles(
    current_user: Annotated[AuthUser, Depends(require_admin)],
    tier: Optional[TierLabel] = None,
    active_only: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_async_db),
):
    """Volunteers ordered by total hours, highest first."""
    return await list_volunteers(
        db,
        current_user,
        tier=tier,
        active_only=active_only,
        skip=skip,
        limit=limit,
    )


@router.get("/profiles/{volunteer_id}", response_model=VolunteerProfileResponse)
async def get_profile(
    volunteer_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(require_admin)],
    db: AsyncSession = Depends(get_async_db),
):
    return await get_volunteer(db, current_user, volunteer_id)


@router.post(
    "/profiles/{volunteer_id}/recompute", response_model=VolunteerProfileResponse
)
async def recompute_profile(
    volunteer_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(require_admin)],
    db: AsyncSession = Depends(get_async_db),
):
    """Rebuild a volunteer's totals from their approved submissions."""
    return await recompute_volunteer(db, current_user, volunteer_id)


# ── Stats ───────────────────────────────────────────────────────────


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    current_user: Annotated[AuthUser, Depends(require_admin)],
    db: AsyncSession = Depends(get_async_db),
):
    return await volunteer_stats(db, current_user)
