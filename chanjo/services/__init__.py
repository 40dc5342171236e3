"""
Application services.
"""

from .coverage import CoverageService, CoverageSummary, RateResult
from .immunization import ChildSummary, ChwDashboard, ImmunizationService, MotherSummary
from .providers import (
    CatalogProvider,
    ChildProvider,
    HistoryProvider,
    StatusWriter,
    UserProvider,
)

__all__ = [
    "CoverageService",
    "CoverageSummary",
    "RateResult",
    "ChildSummary",
    "ChwDashboard",
    "ImmunizationService",
    "MotherSummary",
    "CatalogProvider",
    "ChildProvider",
    "HistoryProvider",
    "StatusWriter",
    "UserProvider",
]
