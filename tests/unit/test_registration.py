"""Unit tests for volunteer registration and referral crediting."""

import pytest
from libs.common.errors import ConflictError, NotFoundError, ValidationError
from services.volunteer_service.models import SOCIAL_BUTTERFLY_BADGE, TierLabel
from services.volunteer_service.services.registration import (
    REFERRAL_CODE_ALPHABET,
    generate_referral_code,
    get_my_profile,
    normalize_referral_code,
    register_volunteer,
    update_my_profile,
)
from tests.conftest import make_member_user


# ---------------------------------------------------------------------------
# Referral codes
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_generated_referral_code_shape():
    code = generate_referral_code()

    assert len(code) == 6
    assert set(code) <= set(REFERRAL_CODE_ALPHABET)


@pytest.mark.unit
def test_normalize_referral_code():
    assert normalize_referral_code("  ab12cd ") == "AB12CD"
    assert normalize_referral_code("   ") is None
    assert normalize_referral_code(None) is None


# ---------------------------------------------------------------------------
# register_volunteer
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_register_starts_with_empty_aggregates(db_session, member_user):
    profile = await register_volunteer(
        db_session,
        member_user,
        full_name="  Ada Lovelace ",
        email="ada@example.com",
        school_organization="Analytical Society",
    )

    assert profile.auth_id == member_user.user_id
    assert profile.full_name == "Ada Lovelace"
    assert profile.total_hours == 0
    assert profile.this_year_hours == 0
    assert profile.tier == TierLabel.NONE
    assert profile.badges == frozenset()
    assert profile.referral_count == 0
    assert len(profile.referral_code) == 6


@pytest.mark.asyncio
@pytest.mark.unit
async def test_register_twice_conflicts(db_session, member_user):
    await register_volunteer(db_session, member_user, full_name="Once")

    with pytest.raises(ConflictError):
        await register_volunteer(db_session, member_user, full_name="Twice")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_register_requires_name(db_session, member_user):
    with pytest.raises(ValidationError):
        await register_volunteer(db_session, member_user, full_name=" ")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_referral_credits_referrer(db_session, member_user):
    referrer = await register_volunteer(db_session, member_user, full_name="Referrer")

    friend = await register_volunteer(
        db_session,
        make_member_user(),
        full_name="Friend",
        referred_by=referrer.referral_code.lower(),
    )

    assert friend.referred_by == referrer.referral_code
    profile = await get_my_profile(db_session, member_user)
    assert profile.referral_count == 1
    assert SOCIAL_BUTTERFLY_BADGE not in profile.badges


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fifth_referral_grants_social_butterfly_once(db_session, member_user):
    referrer = await register_volunteer(db_session, member_user, full_name="Referrer")
    code = referrer.referral_code

    for i in range(4):
        await register_volunteer(
            db_session, make_member_user(), full_name=f"Friend {i}", referred_by=code
        )
    profile = await get_my_profile(db_session, member_user)
    assert profile.referral_count == 4
    assert SOCIAL_BUTTERFLY_BADGE not in profile.badges

    await register_volunteer(
        db_session, make_member_user(), full_name="Friend 5", referred_by=code
    )
    profile = await get_my_profile(db_session, member_user)
    assert profile.referral_count == 5
    assert profile.badges == {SOCIAL_BUTTERFLY_BADGE}

    await register_volunteer(
        db_session, make_member_user(), full_name="Friend 6", referred_by=code
    )
    profile = await get_my_profile(db_session, member_user)
    assert profile.referral_count == 6
    assert sorted(profile.badges) == [SOCIAL_BUTTERFLY_BADGE]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_referral_code_is_ignored(db_session, member_user):
    profile = await register_volunteer(
        db_session, member_user, full_name="Solo", referred_by="ZZZZZZ"
    )

    assert profile.referred_by == "ZZZZZZ"
    assert profile.referral_count == 0


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_profile_before_registering(db_session):
    with pytest.raises(NotFoundError):
        await get_my_profile(db_session, make_member_user())


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_profile_fields(db_session, member_user):
    await register_volunteer(db_session, member_user, full_name="Old Name")

    profile = await update_my_profile(
        db_session, member_user, {"full_name": "New Name", "phone_number": "555-0100"}
    )

    assert profile.full_name == "New Name"
    assert profile.phone_number == "555-0100"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_profile_rejects_aggregates(db_session, member_user):
    await register_volunteer(db_session, member_user, full_name="Sneaky")

    with pytest.raises(ValidationError):
        await update_my_profile(db_session, member_user, {"total_hours": 500})
