"""
Coverage analytics.

Pure helpers used by coverage reports and dashboards: status bands, gap
priorities, canned recommendations and simple trend detection.
"""

from __future__ import annotations

import math
from typing import Sequence

from chanjo.models import (
    CoverageBand,
    CoverageGap,
    GapPriority,
    ImpactEstimate,
    Trend,
    TrendDirection,
)

DEFAULT_TARGET = 90


def coverage_status(rate: float) -> CoverageBand:
    if rate >= 90:
        return CoverageBand.ON_TARGET
    if rate >= 80:
        return CoverageBand.NEAR_TARGET
    return CoverageBand.OFF_TARGET


def gap_priority(gap: float) -> GapPriority:
    if gap > 20:
        return GapPriority.CRITICAL
    if gap > 10:
        return GapPriority.HIGH
    if gap > 5:
        return GapPriority.MEDIUM
    return GapPriority.LOW


def gap_recommendations(current: float, target: float) -> list[str]:
    """Suggested actions for closing a coverage gap."""
    gap = target - current
    if gap > 20:
        return [
            "Organize vaccination outreach camp",
            "Increase community mobilization efforts",
            "Schedule extra vaccination days",
        ]
    if gap > 10:
        return [
            "Send targeted reminders to defaulters",
            "Increase CHW follow-up visits",
            "Review and improve access to facility",
        ]
    return [
        "Continue current efforts",
        "Monitor defaulters closely",
    ]


def compare_trend(current: float, previous: float) -> Trend:
    if current > previous:
        return Trend.UP
    if current < previous:
        return Trend.DOWN
    return Trend.STABLE


def trend_direction(values: Sequence[float]) -> TrendDirection:
    """
    Compare the mean of the last three values with the mean of the rest.

    A move of more than two percentage points either way counts as a
    direction; fewer than four values is not enough to tell.
    """
    if len(values) < 2:
        return TrendDirection.INSUFFICIENT_DATA

    recent = list(values[-3:])
    earlier = list(values[:-3])
    if not earlier:
        return TrendDirection.INSUFFICIENT_DATA

    recent_avg = sum(recent) / len(recent)
    earlier_avg = sum(earlier) / len(earlier)

    if recent_avg > earlier_avg + 2:
        return TrendDirection.IMPROVING
    if recent_avg < earlier_avg - 2:
        return TrendDirection.DECLINING
    return TrendDirection.STABLE


def total_coverage(actuals: Sequence[float]) -> int:
    """Mean coverage across vaccines, rounded half up."""
    if not actuals:
        return 0
    return math.floor(sum(actuals) / len(actuals) + 0.5)


def estimate_impact(gaps: Sequence[CoverageGap]) -> ImpactEstimate:
    """Rough effort needed to close every gap."""
    total_gap = sum(g.gap for g in gaps)
    avg_gap = total_gap / len(gaps) if gaps else 0

    if avg_gap > 20:
        time_to_close = "3-6 months"
    elif avg_gap > 10:
        time_to_close = "1-3 months"
    else:
        time_to_close = "1 month"

    return ImpactEstimate(
        additional_vaccinations=math.ceil(total_gap * 10),
        potential_children_protected=math.ceil(total_gap * 15),
        estimated_time_to_close=time_to_close,
    )
