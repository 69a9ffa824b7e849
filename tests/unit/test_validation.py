"""Unit tests for submission input cleaning."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from libs.common.errors import ValidationError
from services.volunteer_service.models import ServiceType
from services.volunteer_service.services.validation import (
    clean_hours,
    clean_optional_text,
    clean_service_date,
    clean_service_type,
    clean_text,
)

TODAY = date(2026, 6, 1)


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1", Decimal("1.00")),
        (2.5, Decimal("2.50")),
        (3, Decimal("3.00")),
        ("0.005", Decimal("0.01")),
        (Decimal("7.125"), Decimal("7.13")),
        ("9999.99", Decimal("9999.99")),
    ],
)
def test_clean_hours_quantizes(raw, expected):
    assert clean_hours(raw) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw",
    [0, "0.004", -1, "NaN", "Infinity", "abc", None, True, "1e30", 1e30, "9" * 29],
)
def test_clean_hours_rejects(raw):
    with pytest.raises(ValidationError) as exc_info:
        clean_hours(raw)
    assert exc_info.value.details["field"] == "hours"


@pytest.mark.unit
def test_clean_service_date_accepts_common_shapes():
    assert clean_service_date("2026-05-31", today=TODAY) == date(2026, 5, 31)
    assert clean_service_date(datetime(2026, 1, 2, 8, 30), today=TODAY) == date(2026, 1, 2)
    assert clean_service_date(TODAY, today=TODAY) == TODAY


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["2026-06-02", "31/05/2026", "", None, 20260501])
def test_clean_service_date_rejects(raw):
    with pytest.raises(ValidationError):
        clean_service_date(raw, today=TODAY)


@pytest.mark.unit
def test_clean_service_type():
    assert clean_service_type("food_rescues") == ServiceType.FOOD_RESCUES
    with pytest.raises(ValidationError) as exc_info:
        clean_service_type("juggling")
    assert "tutoring" in exc_info.value.details["allowed"]


@pytest.mark.unit
def test_clean_text():
    assert clean_text("  Beach cleanup ", "activity_name") == "Beach cleanup"
    with pytest.raises(ValidationError):
        clean_text("   ", "activity_name")
    with pytest.raises(ValidationError):
        clean_text("x" * 201, "activity_name", max_length=200)
    assert clean_optional_text("  ", "proof_reference") is None
    assert clean_optional_text(None, "proof_reference") is None


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["10000", "9999.995", 1000000])
def test_clean_hours_rejects_claims_above_maximum(raw):
    with pytest.raises(ValidationError) as exc_info:
        clean_hours(raw)
    assert exc_info.value.details == {"field": "hours", "max": "9999.99"}
