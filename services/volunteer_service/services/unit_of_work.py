"""Persistence boundary for reconciliation.

``HoursRepository`` is the load/save surface used by the lifecycle and
accrual code. ``UnitOfWork.execute`` runs a read-modify-write against it and
commits exactly once, so a submission's status change and the volunteer
aggregate change it causes are stored together or not at all.
"""

import uuid
from typing import Awaitable, Callable, Optional, TypeVar

from libs.common.config import get_settings
from libs.common.errors import ConflictError, PersistenceError, ServiceError
from libs.common.logging import get_logger
from services.volunteer_service.models import (
    SubmissionStatus,
    VolunteerHoursSubmission,
    VolunteerProfile,
)
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

logger = get_logger(__name__)

T = TypeVar("T")


class HoursRepository:
    """Load/save operations over submissions and volunteer profiles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_submission(
        self, submission_id: uuid.UUID, *, for_update: bool = False
    ) -> Optional[VolunteerHoursSubmission]:
        q = select(VolunteerHoursSubmission).where(
            VolunteerHoursSubmission.id == submission_id
        )
        if for_update:
            q = q.with_for_update()
        return (await self.db.execute(q)).scalar_one_or_none()

    async def load_volunteer(
        self, volunteer_id: uuid.UUID, *, for_update: bool = False
    ) -> Optional[VolunteerProfile]:
        q = select(VolunteerProfile).where(VolunteerProfile.id == volunteer_id)
        if for_update:
            # Serializes concurrent reviews of the same volunteer on Postgres
            q = q.with_for_update()
        return (await self.db.execute(q)).scalar_one_or_none()

    async def load_volunteer_by_auth_id(
        self, auth_id: str, *, for_update: bool = False
    ) -> Optional[VolunteerProfile]:
        q = select(VolunteerProfile).where(VolunteerProfile.auth_id == auth_id)
        if for_update:
            q = q.with_for_update()
        return (await self.db.execute(q)).scalar_one_or_none()

    async def load_volunteer_by_referral_code(
        self, referral_code: str, *, for_update: bool = False
    ) -> Optional[VolunteerProfile]:
        q = select(VolunteerProfile).where(
            VolunteerProfile.referral_code == referral_code
        )
        if for_update:
            q = q.with_for_update()
        return (await self.db.execute(q)).scalar_one_or_none()

    async def referral_code_taken(self, referral_code: str) -> bool:
        q = select(VolunteerProfile.id).where(
            VolunteerProfile.referral_code == referral_code
        )
        return (await self.db.execute(q)).first() is not None

    async def load_approved_submissions(
        self, volunteer_id: uuid.UUID
    ) -> list[VolunteerHoursSubmission]:
        q = select(VolunteerHoursSubmission).where(
            VolunteerHoursSubmission.volunteer_id == volunteer_id,
            VolunteerHoursSubmission.status == SubmissionStatus.APPROVED,
        )
        return list((await self.db.execute(q)).scalars().all())

    async def save_submission(
        self, submission: VolunteerHoursSubmission
    ) -> VolunteerHoursSubmission:
        self.db.add(submission)
        await self.db.flush()
        return submission

    async def save_volunteer(self, volunteer: VolunteerProfile) -> VolunteerProfile:
        self.db.add(volunteer)
        await self.db.flush()
        return volunteer

    async def save_both(
        self, submission: VolunteerHoursSubmission, volunteer: VolunteerProfile
    ) -> None:
        """Stage both records in the same flush."""
        self.db.add(volunteer)
        self.db.add(submission)
        await self.db.flush()


class UnitOfWork:
    """Transactional boundary around a single read-modify-write.

    ``execute(fn)`` calls ``fn(repo)`` and commits once. Lost updates detected
    through the volunteer ``version`` column are retried from the start; other
    storage failures roll back and surface as typed errors.
    """

    def __init__(self, db: AsyncSession, max_retries: Optional[int] = None):
        self.db = db
        self.repo = HoursRepository(db)
        self.max_retries = (
            get_settings().UNIT_OF_WORK_MAX_RETRIES
            if max_retries is None
            else max_retries
        )

    async def execute(self, fn: Callable[[HoursRepository], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                return await self._run_once(fn)
            except ConflictError as exc:
                if not exc.retryable or attempt >= self.max_retries:
                    raise
                attempt += 1
                logger.warning(
                    "Concurrent modification detected, retrying (attempt %d/%d)",
                    attempt,
                    self.max_retries,
                )

    async def read(self, fn: Callable[[HoursRepository], Awaitable[T]]) -> T:
        """Run a read-only query, surfacing storage failures as typed errors."""
        try:
            return await fn(self.repo)
        except SQLAlchemyError as exc:
            logger.exception("Storage failure while reading")
            raise PersistenceError("Storage is unavailable") from exc

    async def _run_once(self, fn: Callable[[HoursRepository], Awaitable[T]]) -> T:
        try:
            result = await fn(self.repo)
            await self.db.commit()
            return result
        except ServiceError:
            await self.db.rollback()
            raise
        except StaleDataError as exc:
            await self.db.rollback()
            raise ConflictError(
                "The record was modified concurrently", retryable=True
            ) from exc
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError("The change conflicts with existing data") from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("Storage failure inside unit of work")
            raise PersistenceError(
                "Storage is unavailable, the change was not saved"
            ) from exc
