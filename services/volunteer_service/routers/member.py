"""Member-facing volunteer endpoints."""

import uuid
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.volunteer_service.models import SubmissionStatus
from services.volunteer_service.schemas import (
    DashboardResponse,
    SubmissionCreate,
    SubmissionResponse,
    SubmissionUpdate,
    VolunteerProfileResponse,
    VolunteerProfileUpdate,
    VolunteerRegister,
)
from services.volunteer_service.services import (
    edit_before_review,
    get_my_profile,
    get_submission,
    list_my_submissions,
    register_volunteer,
    submit,
    update_my_profile,
    volunteer_dashboard,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/volunteers", tags=["volunteers"])


# ── Profile ─────────────────────────────────────────────────────────


@router.post(
    "/profile/me",
    response_model=VolunteerProfileResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_me(
    data: VolunteerRegister,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Register the caller as a volunteer."""
    return await register_volunteer(db, current_user, **data.model_dump())


@router.get("/profile/me", response_model=VolunteerProfileResponse)
async def get_my_volunteer_profile(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return await get_my_profile(db, current_user)


@router.patch("/profile/me", response_model=VolunteerProfileResponse)
async def update_my_volunteer_profile(
    data: VolunteerProfileUpdate,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return await update_my_profile(db, current_user, data.model_dump(exclude_unset=True))


@router.get("/dashboard", response_model=DashboardResponse)
async def get_my_dashboard(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Totals, tier progress, badges and recent submissions for the caller."""
    summary = await volunteer_dashboard(db, current_user)
    return DashboardResponse(
        **{
            **summary,
            "profile": VolunteerProfileResponse.model_validate(summary["profile"]),
            "recent_submissions": [
                SubmissionResponse.model_validate(s)
                for s in summary["recent_submissions"]
            ],
        }
    )


# ── Hours ───────────────────────────────────────────────────────────


@router.post(
    "/hours",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_hours(
    data: SubmissionCreate,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Submit service hours for review."""
    return await submit(db, current_user, **data.model_dump())


@router.get("/hours", response_model=list[SubmissionResponse])
async def list_my_hours(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    status_filter: Optional[SubmissionStatus] = Query(None, alias="status"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_async_db),
):
    """The caller's submission history, newest first."""
    return await list_my_submissions(
        db,
        current_user,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/hours/{submission_id}", response_model=SubmissionResponse)
async def get_my_hours(
    submission_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return await get_submission(db, current_user, submission_id)


@router.patch("/hours/{submission_id}", response_model=SubmissionResponse)
async def edit_my_hours(
    submission_id: uuid.UUID,
    data: SubmissionUpdate,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Edit a submission that has not been reviewed yet."""
    return await edit_before_review(
        db, current_user, submission_id, data.model_dump(exclude_unset=True)
    )
