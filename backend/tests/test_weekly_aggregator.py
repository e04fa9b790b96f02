"""Tests for weekly score aggregation."""
from __future__ import annotations

from datetime import date

from habitcoach.services.weekly_aggregator import DailyReport, aggregate, round_score, week_window, weekday_slot

MONDAY = date(2025, 3, 3)


def test_week_window_is_monday_to_sunday() -> None:
    assert week_window(date(2025, 3, 6)) == (MONDAY, date(2025, 3, 9))
    assert week_window(MONDAY) == (MONDAY, date(2025, 3, 9))
    assert week_window(date(2025, 3, 9)) == (MONDAY, date(2025, 3, 9))


def test_weekday_slot_monday_first() -> None:
    assert weekday_slot(MONDAY) == 0
    assert weekday_slot(date(2025, 3, 9)) == 6


def test_sparse_week() -> None:
    reports = [
        DailyReport(report_date=date(2025, 3, 5), achievement_score=8),
        DailyReport(report_date=date(2025, 3, 7), achievement_score=6),
    ]

    stats = aggregate(reports, MONDAY)

    assert stats.daily_scores == [0, 0, 8, 0, 6, 0, 0]
    assert stats.average_score == 2.0
    assert stats.days_completed == 2
    assert stats.week_start == MONDAY
    assert stats.week_end == date(2025, 3, 9)


def test_empty_week() -> None:
    stats = aggregate([], MONDAY)
    assert stats.daily_scores == [0] * 7
    assert stats.average_score == 0.0
    assert stats.days_completed == 0


def test_average_rounds_half_up() -> None:
    # 1/7 = 0.142..., 5/7 = 0.714..., 25/7 = 3.571...
    assert aggregate([DailyReport(MONDAY, 1)], MONDAY).average_score == 0.1
    assert aggregate([DailyReport(MONDAY, 5)], MONDAY).average_score == 0.7
    week = [DailyReport(date(2025, 3, 3 + offset), score) for offset, score in enumerate([5, 5, 5, 5, 5])]
    assert aggregate(week, MONDAY).average_score == 3.6
    assert round_score(0.25) == 0.3
    assert round_score(0.35) == 0.4


def test_full_week() -> None:
    week = [DailyReport(date(2025, 3, 3 + offset), 10) for offset in range(7)]
    stats = aggregate(week, MONDAY)
    assert stats.average_score == 10.0
    assert stats.days_completed == 7


def test_same_weekday_keeps_later_report() -> None:
    reports = [DailyReport(MONDAY, 3), DailyReport(MONDAY, 9)]
    assert aggregate(reports, MONDAY).daily_scores[0] == 9
