"""Tests for duration string parsing."""
from __future__ import annotations

import pytest

from habitcoach.services.duration_parser import is_recognized_duration, parse_duration_days


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("3개월", 90),
        ("2주", 14),
        ("10일", 10),
        ("1주일", 7),
        ("2 weeks", 14),
        ("1 month", 30),
    ],
)
def test_known_units(text: str, expected: int) -> None:
    assert parse_duration_days(text) == expected


def test_unit_without_number_is_zero() -> None:
    assert parse_duration_days("주간 점검") == 0
    assert is_recognized_duration("주간 점검") is False


def test_no_unit_is_zero() -> None:
    assert parse_duration_days("forever") == 0
    assert parse_duration_days("") == 0
    assert parse_duration_days(None) == 0


def test_negative_and_zero_are_clamped() -> None:
    assert parse_duration_days("-2주") == 0
    assert parse_duration_days("0일") == 0
    assert is_recognized_duration("0일") is True


def test_month_checked_before_day() -> None:
    # "개월" must win even though other unit characters could appear later
    assert parse_duration_days("2개월 매일") == 60
