"""Unit tests for the unit of work: commit, rollback and error mapping."""

import pytest
from libs.common.errors import ConflictError, NotFoundError, PersistenceError
from services.volunteer_service.models import VolunteerHoursSubmission, VolunteerProfile
from services.volunteer_service.services.unit_of_work import UnitOfWork
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from tests.factories import SubmissionFactory, VolunteerProfileFactory


async def _insert_volunteer(db, **overrides):
    volunteer = VolunteerProfileFactory.create(**overrides)
    db.add(volunteer)
    await db.commit()
    return volunteer


async def _bump_version_behind_orm(db, volunteer_id):
    """Simulate another transaction writing the same row."""
    table = VolunteerProfile.__table__
    await db.execute(
        update(table)
        .where(table.c.id == volunteer_id)
        .values(version=table.c.version + 1)
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_execute_commits_submission_and_volunteer_together(db_session):
    volunteer = await _insert_volunteer(db_session)
    volunteer_id = volunteer.id

    async def _write(repo):
        v = await repo.load_volunteer(volunteer_id, for_update=True)
        v.full_name = "Renamed"
        submission = SubmissionFactory.create(volunteer_id=v.id)
        await repo.save_both(submission, v)
        return submission.id

    submission_id = await UnitOfWork(db_session).execute(_write)

    await db_session.rollback()
    reloaded = await UnitOfWork(db_session).repo.load_submission(submission_id)
    assert reloaded is not None
    name = (
        await db_session.execute(
            select(VolunteerProfile.full_name).where(VolunteerProfile.id == volunteer_id)
        )
    ).scalar_one()
    assert name == "Renamed"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_service_error_rolls_back_everything(db_session):
    volunteer = await _insert_volunteer(db_session)
    volunteer_id = volunteer.id

    async def _write(repo):
        v = await repo.load_volunteer(volunteer_id, for_update=True)
        v.full_name = "Half written"
        await repo.save_both(SubmissionFactory.create(volunteer_id=v.id), v)
        raise NotFoundError("gone")

    with pytest.raises(NotFoundError):
        await UnitOfWork(db_session).execute(_write)

    name = (
        await db_session.execute(
            select(VolunteerProfile.full_name).where(VolunteerProfile.id == volunteer_id)
        )
    ).scalar_one()
    assert name == "Test Volunteer"
    submissions = (
        await db_session.execute(
            select(func.count()).select_from(VolunteerHoursSubmission)
        )
    ).scalar_one()
    assert submissions == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_stale_write_is_retried_once(db_session):
    volunteer = await _insert_volunteer(db_session)
    volunteer_id = volunteer.id
    calls = 0

    async def _write(repo):
        nonlocal calls
        calls += 1
        v = await repo.load_volunteer(volunteer_id)
        if calls == 1:
            await _bump_version_behind_orm(repo.db, volunteer_id)
        v.full_name = f"Attempt {calls}"
        await repo.save_volunteer(v)
        return v.full_name

    result = await UnitOfWork(db_session, max_retries=1).execute(_write)

    assert calls == 2
    assert result == "Attempt 2"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_repeated_stale_write_surfaces_conflict(db_session):
    volunteer = await _insert_volunteer(db_session)
    volunteer_id = volunteer.id
    calls = 0

    async def _write(repo):
        nonlocal calls
        calls += 1
        v = await repo.load_volunteer(volunteer_id)
        await _bump_version_behind_orm(repo.db, volunteer_id)
        v.full_name = "Never saved"
        await repo.save_volunteer(v)

    with pytest.raises(ConflictError) as exc_info:
        await UnitOfWork(db_session, max_retries=1).execute(_write)

    assert calls == 2
    assert exc_info.value.retryable is True


@pytest.mark.asyncio
@pytest.mark.unit
async def test_integrity_error_maps_to_conflict_without_retry(db_session):
    await _insert_volunteer(db_session, auth_id="dup-auth")
    calls = 0

    async def _write(repo):
        nonlocal calls
        calls += 1
        await repo.save_volunteer(VolunteerProfileFactory.create(auth_id="dup-auth"))

    with pytest.raises(ConflictError) as exc_info:
        await UnitOfWork(db_session).execute(_write)

    assert calls == 1
    assert exc_info.value.retryable is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_storage_failure_maps_to_persistence_error(db_session):
    async def _write(repo):
        raise OperationalError("UPDATE volunteer_profiles", {}, Exception("disk I/O error"))

    with pytest.raises(PersistenceError):
        await UnitOfWork(db_session).execute(_write)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_read_maps_storage_failure(db_session):
    async def _read(repo):
        raise OperationalError("SELECT 1", {}, Exception("connection reset"))

    with pytest.raises(PersistenceError):
        await UnitOfWork(db_session).read(_read)
