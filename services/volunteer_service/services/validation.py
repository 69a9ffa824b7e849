"""Input checks shared by submit and edit."""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from libs.common.datetime_utils import utc_today
from libs.common.errors import ValidationError
from services.volunteer_service.models import ServiceType

HOURS_QUANTUM = Decimal("0.01")
# Largest claim that fits the submission hours column
MAX_SUBMISSION_HOURS = Decimal("9999.99")


def clean_hours(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError("Hours must be a number", details={"field": "hours"})
    try:
        hours = Decimal(str(value))
        if not hours.is_finite():
            raise ValidationError("Hours must be a number", details={"field": "hours"})
        hours = hours.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise ValidationError("Hours must be a number", details={"field": "hours"})
    if hours <= 0:
        raise ValidationError(
            "Hours must be greater than zero", details={"field": "hours"}
        )
    if hours > MAX_SUBMISSION_HOURS:
        raise ValidationError(
            f"Hours cannot exceed {MAX_SUBMISSION_HOURS}",
            details={"field": "hours", "max": str(MAX_SUBMISSION_HOURS)},
        )
    return hours


def clean_service_date(value: Any, today: Optional[date] = None) -> date:
    if isinstance(value, datetime):
        value = value.date()
    elif isinstance(value, str):
        try:
            value = date.fromisoformat(value.strip()[:10])
        except ValueError:
            value = None
    if not isinstance(value, date):
        raise ValidationError(
            "Service date must be a valid ISO date",
            details={"field": "service_date"},
        )
    if value > (today or utc_today()):
        raise ValidationError(
            "Service date cannot be in the future",
            details={"field": "service_date"},
        )
    return value


def clean_service_type(value: Any) -> ServiceType:
    try:
        return ServiceType(value)
    except ValueError:
        raise ValidationError(
            f"Invalid service type {value!r}",
            details={
                "field": "service_type",
                "allowed": [t.value for t in ServiceType],
            },
        )


def clean_text(value: Any, field: str, max_length: Optional[int] = None) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", details={"field": field})
    value = value.strip()
    if max_length and len(value) > max_length:
        raise ValidationError(
            f"{field} must be at most {max_length} characters",
            details={"field": field},
        )
    return value


def clean_optional_text(value: Any, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={"field": field})
    return value.strip() or None
