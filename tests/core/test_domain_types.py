"""Domain Types - verifies enums, constants and datetime normalization.

Tests:
    - ServiceType parses case-insensitively and rejects unknown values
    - PERIOD_END_MAX is the aware UTC sentinel
    - as_utc treats naive values as UTC, converts aware ones and clamps at the
      calendar edges
"""

from datetime import datetime, timedelta, timezone
from typing import get_type_hints

import pytest

from school_api.core.domain_types import (
    PERIOD_END_MAX, PERIOD_START_MIN, READ_METHODS, WRITE_METHODS, SchoolId, ServiceType,
    as_utc,
)
from school_api.core.entities import School
from school_api.core.repository_protocols import SchoolQueryRepository


@pytest.mark.parametrize("raw", ["reader", "READER", " Reader "])
def test_service_type_parse_is_case_insensitive(raw):
    assert ServiceType.parse(raw) == ServiceType.READER


def test_service_type_parse_rejects_unknown():
    with pytest.raises(ValueError, match="Unknown service type"):
        ServiceType.parse("replica")


def test_service_type_has_three_profiles():
    assert {s.value for s in ServiceType} == {"default", "reader", "writer"}


def test_read_and_write_methods_are_disjoint():
    assert not READ_METHODS & WRITE_METHODS


def test_period_end_max_is_aware_utc():
    assert PERIOD_END_MAX.tzinfo == timezone.utc
    assert PERIOD_END_MAX.isoformat() == "9999-12-31T23:59:59.999999+00:00"


def test_as_utc_assumes_naive_is_utc():
    assert as_utc(datetime(2024, 1, 1, 12)) == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


def test_as_utc_converts_offsets():
    paris = timezone(timedelta(hours=1))
    assert as_utc(datetime(2024, 1, 1, 13, tzinfo=paris)) == datetime(
        2024, 1, 1, 12, tzinfo=timezone.utc,
    )


def test_as_utc_clamps_offset_past_year_9999():
    eastern = timezone(timedelta(hours=-5))
    assert as_utc(datetime(9999, 12, 31, 23, tzinfo=eastern)) == PERIOD_END_MAX


def test_as_utc_clamps_offset_before_year_1():
    plus_five = timezone(timedelta(hours=5))
    assert as_utc(datetime(1, 1, 1, tzinfo=plus_five)) == PERIOD_START_MIN


def test_school_is_current_only_with_open_period():
    assert School("A", "B", valid_to=PERIOD_END_MAX).is_current
    assert not School("A", "B", valid_to=datetime(2024, 1, 1, tzinfo=timezone.utc)).is_current


def test_school_identity_is_typed_across_the_boundary():
    assert get_type_hints(School)["id"] == SchoolId | None
    assert get_type_hints(SchoolQueryRepository.get_by_id)["school_id"] is SchoolId
