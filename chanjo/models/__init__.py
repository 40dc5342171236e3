"""
Data models for Chanjo.
"""

from .vaccination import (
    BoosterDose,
    Child,
    ChildSchedule,
    ChildVaccinationStatus,
    DueDose,
    DueStatus,
    Gender,
    MotherStatus,
    RecommendedAge,
    RecordStatus,
    ScheduleStatus,
    VaccinationRecord,
    VaccineDefinition,
    VaccineRoute,
    generate_id,
)
from .user import Permission, Role, User
from .coverage import (
    CoverageBand,
    CoverageGap,
    CoveragePeriod,
    CoverageReport,
    CoverageTrend,
    CoverageTrendPoint,
    GapAnalysis,
    GapPriority,
    ImpactEstimate,
    Trend,
    TrendDirection,
    VaccineCoverage,
)

__all__ = [
    "BoosterDose",
    "Child",
    "ChildSchedule",
    "ChildVaccinationStatus",
    "MotherStatus",
    "DueDose",
    "DueStatus",
    "Gender",
    "RecommendedAge",
    "RecordStatus",
    "ScheduleStatus",
    "VaccinationRecord",
    "VaccineDefinition",
    "VaccineRoute",
    "generate_id",
    "Permission",
    "Role",
    "User",
    "CoverageBand",
    "CoverageGap",
    "CoveragePeriod",
    "CoverageReport",
    "CoverageTrend",
    "CoverageTrendPoint",
    "GapAnalysis",
    "GapPriority",
    "ImpactEstimate",
    "Trend",
    "TrendDirection",
    "VaccineCoverage",
]
