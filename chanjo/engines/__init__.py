"""
Schedule and coverage engines.
"""

from .schedule import (
    COVERED_STATUSES,
    DEFAULTER_GRACE_DAYS,
    add_months,
    age_in_months,
    compute_status,
    compute_upcoming_doses,
    coverage_rate,
    derive_child_status,
    due_date_for,
    index_history,
)
from .coverage import (
    compare_trend,
    coverage_status,
    estimate_impact,
    gap_priority,
    gap_recommendations,
    total_coverage,
    trend_direction,
)

__all__ = [
    "COVERED_STATUSES",
    "DEFAULTER_GRACE_DAYS",
    "add_months",
    "age_in_months",
    "compute_status",
    "compute_upcoming_doses",
    "coverage_rate",
    "derive_child_status",
    "due_date_for",
    "index_history",
    "compare_trend",
    "coverage_status",
    "estimate_impact",
    "gap_priority",
    "gap_recommendations",
    "total_coverage",
    "trend_direction",
]
