"""
Coverage reporting service.

Monthly per-vaccine coverage, gap analysis against a target, coverage
trends and the admin coverage summary. All percentages go through
coverage_rate() so every view rounds the same way.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from pydantic import BaseModel, Field

from chanjo.auth import require_any_role, require_permission
from chanjo.config import Settings, get_settings
from chanjo.engines.coverage import (
    compare_trend,
    coverage_status,
    estimate_impact,
    gap_priority,
    gap_recommendations,
    total_coverage,
    trend_direction,
)
from chanjo.engines.schedule import COVERED_STATUSES, add_months, age_in_months, coverage_rate
from chanjo.models import (
    Child,
    CoverageGap,
    CoveragePeriod,
    CoverageReport,
    CoverageTrend,
    CoverageTrendPoint,
    GapAnalysis,
    GapPriority,
    Permission,
    RecordStatus,
    Role,
    User,
    VaccineCoverage,
    VaccineDefinition,
)
from chanjo.services.providers import CatalogProvider, ChildProvider, HistoryProvider

logger = logging.getLogger(__name__)

# Children stay eligible for a vaccine until this many months past its
# primary-dose age.
ELIGIBILITY_WINDOW_MONTHS = 3


class RateResult(BaseModel):
    count: int
    total: int
    rate: int


class VaccineCoverageSummary(BaseModel):
    vaccine_code: str
    coverage: int
    target: int


class CoverageSummary(BaseModel):
    """Admin overview across all children."""
    total_children: int
    up_to_date_children: int
    overall_coverage: int
    vaccines: list[VaccineCoverageSummary] = Field(default_factory=list)


class CoverageService:
    """Coverage reports built from the catalog, children and history."""

    def __init__(
        self,
        catalog: CatalogProvider,
        history: HistoryProvider,
        children: ChildProvider,
        settings: Settings | None = None,
    ):
        self.catalog = catalog
        self.history = history
        self.children = children
        self.settings = settings or get_settings()

    def _eligible_children(self, vaccine: VaccineDefinition, as_of: date) -> list[Child]:
        max_age = vaccine.recommended_age.months + ELIGIBILITY_WINDOW_MONTHS
        return [
            c for c in self.children.list_children()
            if c.date_of_birth <= as_of and age_in_months(c.date_of_birth, as_of) <= max_age
        ]

    def vaccine_coverage(self, vaccine: VaccineDefinition, period: CoveragePeriod) -> RateResult:
        """
        Completed doses of a vaccine given in the period, over the children
        of eligible age at the end of the period.
        """
        eligible = self._eligible_children(vaccine, period.end)
        given = self.history.list_records(
            vaccine_id=vaccine.id,
            status=RecordStatus.COMPLETED,
            start=period.start,
            end=period.end,
        )
        return RateResult(
            count=len(given),
            total=len(eligible),
            rate=coverage_rate(len(given), len(eligible)),
        )

    def generate_report(
        self,
        period: CoveragePeriod,
        user: User,
        hospital_id: str | None = None,
        notes: str | None = None,
        is_final: bool = False,
        target: int | None = None,
    ) -> CoverageReport:
        """Build the monthly coverage report for every active vaccine."""
        require_permission(user, Permission.COVERAGE_WRITE)
        target = self.settings.coverage_target if target is None else target

        entries = []
        for vaccine in self.catalog.list_active_vaccines():
            current = self.vaccine_coverage(vaccine, period)
            previous = self.vaccine_coverage(vaccine, period.previous())
            entries.append(VaccineCoverage(
                vaccine_id=vaccine.id,
                vaccine_code=vaccine.code,
                target=target,
                actual=current.rate,
                gap=target - current.rate,
                trend=compare_trend(current.rate, previous.rate),
                status=coverage_status(current.rate),
                vaccinations_given=current.count,
                eligible_children=current.total,
            ))

        logger.info("Coverage report for %s: %d vaccines", period, len(entries))
        return CoverageReport(
            hospital_id=hospital_id,
            period=period,
            coverage_data=entries,
            total_coverage=total_coverage([e.actual for e in entries]),
            total_vaccinations=sum(e.vaccinations_given for e in entries),
            total_eligible=sum(e.eligible_children for e in entries),
            generated_by=user.id,
            notes=notes,
            is_final=is_final,
        )

    def gap_analysis(self, report: CoverageReport, target: int | None = None) -> GapAnalysis:
        """Vaccines below target, with priorities and suggested actions."""
        target = self.settings.coverage_target if target is None else target
        gaps = [
            CoverageGap(
                vaccine_id=entry.vaccine_id,
                vaccine_code=entry.vaccine_code,
                current_coverage=entry.actual,
                target=target,
                gap=target - entry.actual,
                priority=gap_priority(target - entry.actual),
                recommendations=gap_recommendations(entry.actual, target),
            )
            for entry in report.coverage_data
            if entry.actual < target
        ]
        return GapAnalysis(
            hospital_id=report.hospital_id,
            target=target,
            gaps=gaps,
            total_gaps=len(gaps),
            critical_gaps=sum(1 for g in gaps if g.priority == GapPriority.CRITICAL),
            estimated_impact=estimate_impact(gaps),
        )

    def coverage_trend(
        self,
        vaccine: VaccineDefinition,
        months: int = 6,
        today: date | None = None,
    ) -> CoverageTrend:
        """Monthly coverage for the last `months` months, oldest first."""
        today = today or date.today()
        points = []
        for back in range(months - 1, -1, -1):
            period = CoveragePeriod.containing(add_months(today, -back))
            result = self.vaccine_coverage(vaccine, period)
            points.append(CoverageTrendPoint(
                period=str(period),
                coverage=result.rate,
                vaccinations=result.count,
            ))

        values = [p.coverage for p in points]
        return CoverageTrend(
            vaccine_id=vaccine.id,
            points=points,
            average=sum(values) / len(values) if values else 0.0,
            direction=trend_direction(values),
        )

    def vaccine_coverage_summary(self, user: User, limit: int | None = 8) -> CoverageSummary:
        """
        Admin overview: children with any record of each vaccine over all
        children, plus the share of children up to date or fully vaccinated.
        """
        require_any_role(user, Role.ADMIN)
        children = self.children.list_children()
        child_ids = {c.id for c in children}
        up_to_date = sum(1 for c in children if c.vaccination_status in COVERED_STATUSES)

        vaccines: Sequence[VaccineDefinition] = self.catalog.list_active_vaccines()
        if limit is not None:
            vaccines = vaccines[:limit]

        summaries = []
        for vaccine in vaccines:
            vaccinated = {
                r.child_id for r in self.history.list_records(vaccine_id=vaccine.id)
                if r.child_id in child_ids
            }
            summaries.append(VaccineCoverageSummary(
                vaccine_code=vaccine.code,
                coverage=coverage_rate(len(vaccinated), len(children)),
                target=self.settings.coverage_target,
            ))

        return CoverageSummary(
            total_children=len(children),
            up_to_date_children=up_to_date,
            overall_coverage=coverage_rate(up_to_date, len(children)),
            vaccines=summaries,
        )
