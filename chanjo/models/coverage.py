"""
Coverage reporting models.

A coverage report summarises, per vaccine, how many eligible children
received a completed dose during one calendar month.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from math import ceil

from pydantic import BaseModel, Field

from .vaccination import generate_id


class CoverageBand(str, Enum):
    ON_TARGET = "on_target"
    NEAR_TARGET = "near_target"
    OFF_TARGET = "off_target"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class GapPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CoveragePeriod(BaseModel):
    """A calendar month."""
    year: int = Field(ge=1900)
    month: int = Field(ge=1, le=12)

    @classmethod
    def parse(cls, value: str) -> "CoveragePeriod":
        """Parse a `YYYY-MM` string."""
        try:
            year, month = value.split("-")
            return cls(year=int(year), month=int(month))
        except ValueError:
            raise ValueError(f"Period must look like YYYY-MM, got {value!r}")

    @classmethod
    def containing(cls, day: date) -> "CoveragePeriod":
        return cls(year=day.year, month=day.month)

    @property
    def quarter(self) -> int:
        return ceil(self.month / 3)

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        """Last day of the month."""
        return self.next().start - timedelta(days=1)

    def previous(self) -> "CoveragePeriod":
        if self.month == 1:
            return CoveragePeriod(year=self.year - 1, month=12)
        return CoveragePeriod(year=self.year, month=self.month - 1)

    def next(self) -> "CoveragePeriod":
        if self.month == 12:
            return CoveragePeriod(year=self.year + 1, month=1)
        return CoveragePeriod(year=self.year, month=self.month + 1)

    def __str__(self) -> str:
        return f"{self.year}-{self.month:02d}"


class VaccineCoverage(BaseModel):
    """Coverage of one vaccine in one period."""
    vaccine_id: str
    vaccine_code: str
    target: int = 90
    actual: int
    gap: int
    trend: Trend = Trend.STABLE
    status: CoverageBand
    vaccinations_given: int
    eligible_children: int


class CoverageReport(BaseModel):
    """Monthly coverage report for a facility (or for everything)."""
    id: str = Field(default_factory=generate_id)
    hospital_id: str | None = None
    period: CoveragePeriod
    coverage_data: list[VaccineCoverage] = Field(default_factory=list)
    total_coverage: int = 0
    total_vaccinations: int = 0
    total_eligible: int = 0
    generated_by: str | None = None
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    notes: str | None = None
    is_final: bool = False

    @property
    def quarter(self) -> int:
        return self.period.quarter


class CoverageGap(BaseModel):
    vaccine_id: str
    vaccine_code: str
    current_coverage: int
    target: int
    gap: int
    priority: GapPriority
    recommendations: list[str] = Field(default_factory=list)


class ImpactEstimate(BaseModel):
    additional_vaccinations: int
    potential_children_protected: int
    estimated_time_to_close: str


class GapAnalysis(BaseModel):
    hospital_id: str | None = None
    target: int
    gaps: list[CoverageGap] = Field(default_factory=list)
    total_gaps: int = 0
    critical_gaps: int = 0
    estimated_impact: ImpactEstimate


class CoverageTrendPoint(BaseModel):
    period: str
    coverage: int
    vaccinations: int


class CoverageTrend(BaseModel):
    vaccine_id: str
    points: list[CoverageTrendPoint] = Field(default_factory=list)
    average: float = 0.0
    direction: TrendDirection = TrendDirection.INSUFFICIENT_DATA
