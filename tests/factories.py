"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    volunteer = VolunteerProfileFactory.create(total_hours=Decimal("40"))
    db_session.add(volunteer)
    await db_session.commit()
"""

import uuid
from datetime import date
from decimal import Decimal

from libs.common.datetime_utils import utc_now, utc_today

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _unique_code() -> str:
    return uuid.uuid4().hex[:6].upper()


# ---------------------------------------------------------------------------
# Volunteer Service
# ---------------------------------------------------------------------------


class VolunteerProfileFactory:
    @staticmethod
    def create(**overrides):
        from services.volunteer_service.models import TierLabel, VolunteerProfile

        defaults = {
            "id": _uuid(),
            "auth_id": f"auth-{uuid.uuid4().hex[:8]}",
            "full_name": "Test Volunteer",
            "email": None,
            "total_hours": Decimal("0.00"),
            "this_year_hours": Decimal("0.00"),
            "hours_year": utc_now().year,
            "tier": TierLabel.NONE,
            "badges": frozenset(),
            "referral_code": _unique_code(),
            "referral_count": 0,
            "is_active": True,
        }
        defaults.update(overrides)
        return VolunteerProfile(**defaults)


class SubmissionFactory:
    @staticmethod
    def create(volunteer_id=None, **overrides):
        from services.volunteer_service.models import (
            ServiceType,
            SubmissionStatus,
            VolunteerHoursSubmission,
        )

        defaults = {
            "id": _uuid(),
            "volunteer_id": volunteer_id or _uuid(),
            "activity_name": "Food bank sort",
            "service_date": utc_today(),
            "service_type": ServiceType.FOOD_RESCUES,
            "hours": Decimal("4.00"),
            "description": "Sorted donations at the food bank",
            "is_historical": False,
            "status": SubmissionStatus.PENDING,
        }
        defaults.update(overrides)
        return VolunteerHoursSubmission(**defaults)


def last_year(month: int = 6, day: int = 15) -> date:
    """A service date safely inside the previous calendar year."""
    return date(utc_today().year - 1, month, day)
