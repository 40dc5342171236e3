"""
Tests for coverage analytics and the coverage service.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from datetime import date

import pytest


class TestCoverageBands:
    """Status bands, gap priorities and recommendations."""

    def test_status_bands(self):
        from chanjo.engines.coverage import coverage_status
        from chanjo.models import CoverageBand

        assert coverage_status(95) == CoverageBand.ON_TARGET
        assert coverage_status(90) == CoverageBand.ON_TARGET
        assert coverage_status(89) == CoverageBand.NEAR_TARGET
        assert coverage_status(80) == CoverageBand.NEAR_TARGET
        assert coverage_status(79) == CoverageBand.OFF_TARGET

    def test_gap_priority(self):
        from chanjo.engines.coverage import gap_priority
        from chanjo.models import GapPriority

        assert gap_priority(21) == GapPriority.CRITICAL
        assert gap_priority(20) == GapPriority.HIGH
        assert gap_priority(11) == GapPriority.HIGH
        assert gap_priority(10) == GapPriority.MEDIUM
        assert gap_priority(6) == GapPriority.MEDIUM
        assert gap_priority(5) == GapPriority.LOW

    def test_recommendations_by_gap_size(self):
        from chanjo.engines.coverage import gap_recommendations

        assert "Organize vaccination outreach camp" in gap_recommendations(60, 90)
        assert "Send targeted reminders to defaulters" in gap_recommendations(75, 90)
        assert gap_recommendations(85, 90) == [
            "Continue current efforts",
            "Monitor defaulters closely",
        ]

    def test_month_on_month_trend(self):
        from chanjo.engines.coverage import compare_trend
        from chanjo.models import Trend

        assert compare_trend(80, 70) == Trend.UP
        assert compare_trend(70, 80) == Trend.DOWN
        assert compare_trend(70, 70) == Trend.STABLE

    def test_total_coverage_rounds_half_up(self):
        from chanjo.engines.coverage import total_coverage

        assert total_coverage([]) == 0
        assert total_coverage([90, 85]) == 88
        assert total_coverage([100, 50, 60]) == 70


class TestTrendDirection:
    """Recent-versus-earlier trend over a series."""

    def test_too_few_points(self):
        from chanjo.engines.coverage import trend_direction
        from chanjo.models import TrendDirection

        assert trend_direction([]) == TrendDirection.INSUFFICIENT_DATA
        assert trend_direction([50]) == TrendDirection.INSUFFICIENT_DATA
        assert trend_direction([50, 60, 70]) == TrendDirection.INSUFFICIENT_DATA

    def test_improving(self):
        from chanjo.engines.coverage import trend_direction
        from chanjo.models import TrendDirection

        assert trend_direction([50, 50, 50, 60, 60, 60]) == TrendDirection.IMPROVING

    def test_declining(self):
        from chanjo.engines.coverage import trend_direction
        from chanjo.models import TrendDirection

        assert trend_direction([80, 80, 70, 70, 70]) == TrendDirection.DECLINING

    def test_small_moves_are_stable(self):
        from chanjo.engines.coverage import trend_direction
        from chanjo.models import TrendDirection

        assert trend_direction([50, 50, 51, 51, 52]) == TrendDirection.STABLE


class TestImpactEstimate:
    """Effort estimate for closing gaps."""

    def _gap(self, gap):
        from chanjo.engines.coverage import gap_priority
        from chanjo.models import CoverageGap

        return CoverageGap(
            vaccine_id="X", vaccine_code="X", current_coverage=90 - gap,
            target=90, gap=gap, priority=gap_priority(gap),
        )

    def test_estimate(self):
        from chanjo.engines.coverage import estimate_impact

        impact = estimate_impact([self._gap(25), self._gap(15)])
        assert impact.additional_vaccinations == 400
        assert impact.potential_children_protected == 600
        assert impact.estimated_time_to_close == "1-3 months"

    def test_large_gaps(self):
        from chanjo.engines.coverage import estimate_impact

        assert estimate_impact([self._gap(30)]).estimated_time_to_close == "3-6 months"

    def test_no_gaps(self):
        from chanjo.engines.coverage import estimate_impact

        impact = estimate_impact([])
        assert impact.additional_vaccinations == 0
        assert impact.estimated_time_to_close == "1 month"


class TestCoveragePeriod:
    """Reporting months."""

    def test_parse(self):
        from chanjo.models import CoveragePeriod

        period = CoveragePeriod.parse("2024-05")
        assert (period.year, period.month) == (2024, 5)
        assert str(period) == "2024-05"
        assert period.quarter == 2

    def test_parse_rejects_garbage(self):
        from chanjo.models import CoveragePeriod

        with pytest.raises(ValueError):
            CoveragePeriod.parse("May 2024")
        with pytest.raises(ValueError):
            CoveragePeriod.parse("2024-13")

    def test_bounds(self):
        from chanjo.models import CoveragePeriod

        feb = CoveragePeriod(year=2024, month=2)
        assert feb.start == date(2024, 2, 1)
        assert feb.end == date(2024, 2, 29)
        assert CoveragePeriod(year=2024, month=12).end == date(2024, 12, 31)

    def test_neighbours_cross_year(self):
        from chanjo.models import CoveragePeriod

        assert str(CoveragePeriod(year=2024, month=1).previous()) == "2023-12"
        assert str(CoveragePeriod(year=2024, month=12).next()) == "2025-01"


@pytest.fixture
def coverage_store():
    """
    One vaccine (BCG at birth) and four children.

    May 2024: two of three eligible children vaccinated.
    April 2024: the one eligible child vaccinated.
    """
    from chanjo.db import InMemoryStore
    from chanjo.models import (
        Child,
        ChildVaccinationStatus,
        RecommendedAge,
        VaccinationRecord,
        VaccineDefinition,
    )

    bcg = VaccineDefinition(id="BCG", name="BCG", code="BCG", recommended_age=RecommendedAge())
    children = [
        Child(id="c1", name="Amani", date_of_birth=date(2024, 5, 3),
              vaccination_status=ChildVaccinationStatus.UP_TO_DATE),
        Child(id="c2", name="Baraka", date_of_birth=date(2024, 5, 20),
              vaccination_status=ChildVaccinationStatus.UP_TO_DATE),
        Child(id="c3", name="Chiku", date_of_birth=date(2024, 4, 10),
              vaccination_status=ChildVaccinationStatus.BEHIND),
        Child(id="c4", name="Dalila", date_of_birth=date(2023, 1, 1)),
    ]
    records = [
        VaccinationRecord(child_id="c1", vaccine_id="BCG", dose_sequence=1, date_given=date(2024, 5, 3)),
        VaccinationRecord(child_id="c2", vaccine_id="BCG", dose_sequence=1, date_given=date(2024, 5, 21)),
        VaccinationRecord(child_id="c3", vaccine_id="BCG", dose_sequence=1, date_given=date(2024, 4, 10)),
    ]
    return InMemoryStore([bcg], children, records)


def _user(role):
    from chanjo.models import User

    return User(id=f"{role.value}-1", name="Test User", role=role)


class TestCoverageService:
    """Reports, gaps, trends and the admin summary."""

    def test_vaccine_coverage(self, coverage_store):
        from chanjo.models import CoveragePeriod
        from chanjo.services import CoverageService

        service = CoverageService(coverage_store, coverage_store, coverage_store)
        result = service.vaccine_coverage(coverage_store.get_vaccine("BCG"), CoveragePeriod.parse("2024-05"))

        assert result.count == 2
        assert result.total == 3
        assert result.rate == 67

    def test_generate_report(self, coverage_store):
        from chanjo.models import CoverageBand, CoveragePeriod, Role, Trend
        from chanjo.services import CoverageService

        service = CoverageService(coverage_store, coverage_store, coverage_store)
        report = service.generate_report(
            CoveragePeriod.parse("2024-05"), _user(Role.HOSPITAL_STAFF),
            hospital_id="h1", target=90,
        )

        assert report.hospital_id == "h1"
        assert report.quarter == 2
        assert report.total_coverage == 67
        assert report.total_vaccinations == 2
        assert report.total_eligible == 3
        entry = report.coverage_data[0]
        assert entry.gap == 23
        assert entry.status == CoverageBand.OFF_TARGET
        # April was 1/1
        assert entry.trend == Trend.DOWN

    def test_report_needs_coverage_write(self, coverage_store):
        from chanjo.errors import PermissionDeniedError
        from chanjo.models import CoveragePeriod, Role
        from chanjo.services import CoverageService

        service = CoverageService(coverage_store, coverage_store, coverage_store)
        with pytest.raises(PermissionDeniedError):
            service.generate_report(CoveragePeriod.parse("2024-05"), _user(Role.MOTHER))

    def test_gap_analysis(self, coverage_store):
        from chanjo.models import CoveragePeriod, GapPriority, Role
        from chanjo.services import CoverageService

        service = CoverageService(coverage_store, coverage_store, coverage_store)
        report = service.generate_report(CoveragePeriod.parse("2024-05"), _user(Role.ADMIN), target=90)
        analysis = service.gap_analysis(report, target=90)

        assert analysis.total_gaps == 1
        assert analysis.critical_gaps == 1
        assert analysis.gaps[0].priority == GapPriority.CRITICAL
        assert analysis.estimated_impact.additional_vaccinations == 230

    def test_no_gaps_when_on_target(self, coverage_store):
        from chanjo.models import CoveragePeriod, Role
        from chanjo.services import CoverageService

        service = CoverageService(coverage_store, coverage_store, coverage_store)
        report = service.generate_report(CoveragePeriod.parse("2024-04"), _user(Role.ADMIN), target=90)

        assert report.total_coverage == 100
        assert service.gap_analysis(report, target=90).gaps == []

    def test_coverage_trend(self, coverage_store):
        from chanjo.models import TrendDirection
        from chanjo.services import CoverageService

        service = CoverageService(coverage_store, coverage_store, coverage_store)
        trend = service.coverage_trend(
            coverage_store.get_vaccine("BCG"), months=3, today=date(2024, 5, 31),
        )

        assert [p.period for p in trend.points] == ["2024-03", "2024-04", "2024-05"]
        assert [p.coverage for p in trend.points] == [0, 100, 67]
        assert trend.direction == TrendDirection.INSUFFICIENT_DATA

    def test_admin_summary(self, coverage_store):
        from chanjo.models import Role
        from chanjo.services import CoverageService

        service = CoverageService(coverage_store, coverage_store, coverage_store)
        summary = service.vaccine_coverage_summary(_user(Role.ADMIN))

        assert summary.total_children == 4
        assert summary.up_to_date_children == 2
        assert summary.overall_coverage == 50
        assert summary.vaccines[0].vaccine_code == "BCG"
        assert summary.vaccines[0].coverage == 75

    def test_admin_summary_counts_fully_vaccinated(self, coverage_store):
        from chanjo.models import ChildVaccinationStatus, Role
        from chanjo.services import CoverageService

        for child_id in coverage_store.children:
            coverage_store.write_status(child_id, ChildVaccinationStatus.COMPLETED)

        service = CoverageService(coverage_store, coverage_store, coverage_store)
        summary = service.vaccine_coverage_summary(_user(Role.ADMIN))

        assert summary.up_to_date_children == 4
        assert summary.overall_coverage == 100

    def test_admin_summary_is_admin_only(self, coverage_store):
        from chanjo.errors import PermissionDeniedError
        from chanjo.models import Role
        from chanjo.services import CoverageService

        service = CoverageService(coverage_store, coverage_store, coverage_store)
        with pytest.raises(PermissionDeniedError):
            service.vaccine_coverage_summary(_user(Role.HOSPITAL_STAFF))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
