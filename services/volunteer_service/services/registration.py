"""Volunteer registration, profile edits and the referral side-channel."""

import secrets
import string
from typing import Any, Optional

from libs.auth.models import AuthUser
from libs.common.errors import ConflictError, NotFoundError, ValidationError
from libs.common.logging import get_logger
from services.volunteer_service.models import ZERO_HOURS, TierLabel, VolunteerProfile
from services.volunteer_service.services.accrual import (
    AccrualReconciler,
    default_reconciler,
)
from services.volunteer_service.services.unit_of_work import (
    HoursRepository,
    UnitOfWork,
)
from services.volunteer_service.services.validation import (
    clean_optional_text,
    clean_text,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_CODE_LENGTH = 6
PROFILE_FIELDS = frozenset({"full_name", "email", "school_organization", "phone_number"})


def generate_referral_code(length: int = REFERRAL_CODE_LENGTH) -> str:
    return "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(length))


def normalize_referral_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    code = code.strip().upper()
    return code or None


async def _unique_referral_code(repo: HoursRepository, attempts: int = 10) -> str:
    for _ in range(attempts):
        code = generate_referral_code()
        if not await repo.referral_code_taken(code):
            return code
    raise ConflictError("Could not allocate a unique referral code")


async def register_volunteer(
    db: AsyncSession,
    actor: AuthUser,
    *,
    full_name: str,
    email: Optional[str] = None,
    school_organization: Optional[str] = None,
    phone_number: Optional[str] = None,
    referred_by: Optional[str] = None,
    reconciler: Optional[AccrualReconciler] = None,
) -> VolunteerProfile:
    """Create the actor's volunteer profile.

    A ``referred_by`` code that matches another volunteer's referral code
    credits that volunteer with a referral in the same transaction. Unknown
    codes are ignored.
    """
    reconciler = reconciler or default_reconciler
    full_name = clean_text(full_name, "full_name", max_length=200)
    email = clean_optional_text(email, "email")
    school_organization = clean_optional_text(school_organization, "school_organization")
    phone_number = clean_optional_text(phone_number, "phone_number")
    referred_by = normalize_referral_code(referred_by)

    async def _register(repo: HoursRepository) -> VolunteerProfile:
        if await repo.load_volunteer_by_auth_id(actor.user_id):
            raise ConflictError("Already registered as a volunteer")

        referrer = None
        if referred_by:
            referrer = await repo.load_volunteer_by_referral_code(
                referred_by, for_update=True
            )
            if not referrer:
                logger.info("Ignoring unknown referral code %s", referred_by)

        profile = VolunteerProfile(
            auth_id=actor.user_id,
            full_name=full_name,
            email=email,
            school_organization=school_organization,
            phone_number=phone_number,
            total_hours=ZERO_HOURS,
            this_year_hours=ZERO_HOURS,
            hours_year=reconciler.current_year(),
            tier=TierLabel.NONE,
            badges=frozenset(),
            referral_code=await _unique_referral_code(repo),
            referred_by=referred_by,
            referral_count=0,
        )
        await repo.save_volunteer(profile)

        if referrer:
            reconciler.apply_referral(referrer)
            await repo.save_volunteer(referrer)
        return profile

    profile = await UnitOfWork(db).execute(_register)
    logger.info("Registered volunteer %s for auth user %s", profile.id, actor.user_id)
    return profile


async def get_my_profile(db: AsyncSession, actor: AuthUser) -> VolunteerProfile:
    async def _get(repo: HoursRepository) -> VolunteerProfile:
        profile = await repo.load_volunteer_by_auth_id(actor.user_id)
        if not profile:
            raise NotFoundError("Volunteer profile not found. Register first.")
        return profile

    return await UnitOfWork(db).read(_get)


async def update_my_profile(
    db: AsyncSession, actor: AuthUser, patch: dict[str, Any]
) -> VolunteerProfile:
    """Update descriptive profile fields. Aggregates are not editable here."""
    unknown = set(patch) - PROFILE_FIELDS
    if unknown:
        raise ValidationError(
            "These fields cannot be edited: " + ", ".join(sorted(unknown)),
            details={"fields": sorted(unknown)},
        )
    changes = {}
    for field, value in patch.items():
        if field == "full_name":
            changes[field] = clean_text(value, field, max_length=200)
        else:
            changes[field] = clean_optional_text(value, field)

    async def _update(repo: HoursRepository) -> VolunteerProfile:
        profile = await repo.load_volunteer_by_auth_id(actor.user_id, for_update=True)
        if not profile:
            raise NotFoundError("Volunteer profile not found")
        for field, value in changes.items():
            setattr(profile, field, value)
        await repo.save_volunteer(profile)
        return profile

    return await UnitOfWork(db).execute(_update)
