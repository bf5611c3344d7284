"""Contribution-style calendar over the activity log.

The window is fixed: every UTC date from ``today - 365`` through ``today``,
so a heatmap always has 366 entries regardless of how sparse the log is.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from app.careergraph.models import CareerActivity, HeatmapDay, HeatmapStats

HEATMAP_WINDOW_DAYS = 365

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def intensity_for_count(count: int) -> int:
    if count <= 0:
        return 0
    if count >= 10:
        return 4
    if count >= 7:
        return 3
    if count >= 4:
        return 2
    return 1


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def bucket_by_date(activities: Iterable[CareerActivity]) -> dict[str, list[CareerActivity]]:
    buckets: dict[str, list[CareerActivity]] = {}
    for activity in activities:
        if activity.timestamp is None:
            continue
        key = activity.timestamp.astimezone(timezone.utc).date().isoformat()
        buckets.setdefault(key, []).append(activity)
    return buckets


def generate_heatmap(activities: Iterable[CareerActivity], today: date | None = None) -> list[HeatmapDay]:
    end = today or _utc_today()
    start = end - timedelta(days=HEATMAP_WINDOW_DAYS)
    buckets = bucket_by_date(activities)

    days: list[HeatmapDay] = []
    current = start
    while current <= end:
        key = current.isoformat()
        day_activities = buckets.get(key, [])
        days.append(
            HeatmapDay(
                date=key,
                count=len(day_activities),
                intensity=intensity_for_count(len(day_activities)),
                activities=list(day_activities),
            )
        )
        current += timedelta(days=1)
    return days


def current_streak(days: list[HeatmapDay]) -> int:
    streak = 0
    for day in reversed(days):
        if day.count <= 0:
            break
        streak += 1
    return streak


def longest_streak(days: list[HeatmapDay]) -> int:
    longest = 0
    run = 0
    for day in days:
        if day.count > 0:
            run += 1
            longest = max(longest, run)
        else:
            run = 0
    return longest


def summarize_heatmap(days: list[HeatmapDay]) -> HeatmapStats:
    total = sum(day.count for day in days)
    active = sum(1 for day in days if day.count > 0)
    avg = round(total / len(days), 1) if days else 0.0
    return HeatmapStats(
        current_streak=current_streak(days),
        longest_streak=longest_streak(days),
        total_activities=total,
        active_days=active,
        avg_per_day=avg,
    )


def group_into_weeks(days: list[HeatmapDay]) -> list[list[HeatmapDay]]:
    """Split the calendar into Sunday-started week columns."""
    weeks: list[list[HeatmapDay]] = []
    week: list[HeatmapDay] = []
    for day in days:
        is_sunday = date.fromisoformat(day.date).isoweekday() == 7
        if is_sunday and week:
            weeks.append(week)
            week = []
        week.append(day)
    if week:
        weeks.append(week)
    return weeks


def month_labels(weeks: list[list[HeatmapDay]]) -> list[tuple[str, int]]:
    labels: list[tuple[str, int]] = []
    last_month = -1
    for index, week in enumerate(weeks):
        if not week:
            continue
        month = date.fromisoformat(week[0].date).month - 1
        if month != last_month and index > 0:
            labels.append((MONTHS[month], index))
        last_month = month
    return labels
