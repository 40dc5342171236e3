"""
Immunization service.

Ties the schedule engine to the data providers: builds per-child
schedules, writes derived status labels back, and assembles the community
health worker views (assigned mothers, defaulters, dashboard).
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from chanjo.auth import require_permission
from chanjo.config import Settings, get_settings
from chanjo.engines.schedule import (
    COVERED_STATUSES,
    compute_status,
    compute_upcoming_doses,
    coverage_rate,
    derive_child_status,
)
from chanjo.errors import NotFoundError
from chanjo.models import (
    Child,
    ChildSchedule,
    ChildVaccinationStatus,
    DueDose,
    MotherStatus,
    Permission,
    ScheduleStatus,
    User,
    VaccinationRecord,
    VaccineDefinition,
)
from chanjo.services.providers import (
    CatalogProvider,
    ChildProvider,
    HistoryProvider,
    StatusWriter,
    UserProvider,
)

logger = logging.getLogger(__name__)

FULLY_VACCINATED = "Fully Vaccinated"


class ChildSummary(BaseModel):
    """A child as shown on the CHW's assigned-mothers list."""
    id: str
    name: str
    date_of_birth: date
    gender: str
    status: ChildVaccinationStatus
    upcoming_vaccines: list[DueDose] = Field(default_factory=list)
    next_vaccine: str = FULLY_VACCINATED
    due_date: date | None = None
    days_left: int | None = None


class MotherSummary(BaseModel):
    """A mother with her children's schedules."""
    id: str
    name: str
    phone: str = "N/A"
    status: MotherStatus
    children: list[ChildSummary] = Field(default_factory=list)


class ChwDashboard(BaseModel):
    """Headline numbers for a community health worker."""
    assigned_mothers: int
    total_children: int
    defaulters: int
    up_to_date: int  # includes fully vaccinated
    coverage_rate: int


class ImmunizationService:
    """
    Schedules, status write-back and CHW views.

    Only `catalog` and `history` are needed for schedule computation; the
    other providers are required by the operations that use them.
    """

    def __init__(
        self,
        catalog: CatalogProvider,
        history: HistoryProvider,
        children: ChildProvider | None = None,
        users: UserProvider | None = None,
        writer: StatusWriter | None = None,
        settings: Settings | None = None,
    ):
        self.catalog = catalog
        self.history = history
        self.children = children
        self.users = users
        self.writer = writer
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Single child
    # -------------------------------------------------------------------------

    def _catalog_snapshot(self) -> tuple[VaccineDefinition, ...]:
        """Load the catalog once per computation; never mutated afterwards."""
        return tuple(self.catalog.list_active_vaccines())

    def _resolve_child(self, child: Child | str) -> Child:
        if isinstance(child, Child):
            return child
        if self.children is None:
            raise ValueError("A child provider is required to look up children by id")
        found = self.children.get_child(child)
        if found is None:
            raise NotFoundError("Child", child)
        return found

    def _build_schedule(
        self,
        child: Child,
        catalog: Sequence[VaccineDefinition],
        records: Sequence[VaccinationRecord],
        today: date | None,
    ) -> ChildSchedule:
        due = compute_upcoming_doses(
            child,
            catalog,
            records,
            today=today,
            count_completed_only=self.settings.count_completed_only,
        )
        grace = self.settings.defaulter_grace_days
        return ChildSchedule(
            child_id=child.id,
            due_doses=due,
            status=compute_status(due, grace),
            vaccination_status=derive_child_status(records, due, grace),
        )

    def schedule_for_child(self, child: Child | str, today: date | None = None) -> ChildSchedule:
        """Compute a child's due doses and status."""
        child = self._resolve_child(child)
        records = self.history.records_for_child(child.id)
        return self._build_schedule(child, self._catalog_snapshot(), records, today)

    def refresh_status(self, child: Child | str, today: date | None = None) -> ChildVaccinationStatus:
        """Recompute a child's status label and persist it."""
        if self.writer is None:
            raise ValueError("A status writer is required to persist vaccination status")
        child = self._resolve_child(child)
        schedule = self.schedule_for_child(child, today)
        self._write(child, schedule.vaccination_status)
        return schedule.vaccination_status

    def _write(self, child: Child, status: ChildVaccinationStatus) -> None:
        if child.vaccination_status != status:
            logger.info(
                "Child %s vaccination status %s -> %s",
                child.id, child.vaccination_status.value, status.value,
            )
        self.writer.write_status(child.id, status)

    # -------------------------------------------------------------------------
    # Batches
    # -------------------------------------------------------------------------

    def schedules_for_children(
        self,
        children: Sequence[Child],
        today: date | None = None,
        persist: bool = False,
    ) -> list[ChildSchedule]:
        """
        Compute schedules for many children.

        One catalog snapshot and one history query serve the whole batch;
        each child's schedule is independent and computed on a thread pool.
        Results come back in the order of `children`.
        """
        if not children:
            return []
        if persist and self.writer is None:
            raise ValueError("A status writer is required to persist vaccination status")

        catalog = self._catalog_snapshot()
        records_by_child = self.history.records_for_children(c.id for c in children)
        logger.debug("Computing schedules for %d children", len(children))

        results: list[Optional[ChildSchedule]] = [None] * len(children)
        workers = min(self.settings.max_workers, len(children))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(
                    self._build_schedule,
                    child,
                    catalog,
                    records_by_child.get(child.id, []),
                    today,
                ): idx
                for idx, child in enumerate(children)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        if persist:
            for child, schedule in zip(children, results):
                self._write(child, schedule.vaccination_status)

        return results

    def defaulters(self, children: Sequence[Child], today: date | None = None) -> list[Child]:
        """Children who are more than the grace period behind."""
        schedules = self.schedules_for_children(children, today)
        return [
            child for child, schedule in zip(children, schedules)
            if schedule.status == ScheduleStatus.BEHIND
        ]

    # -------------------------------------------------------------------------
    # Community health worker views
    # -------------------------------------------------------------------------

    def _require_people(self) -> None:
        if self.children is None or self.users is None:
            raise ValueError("Child and user providers are required for CHW views")

    def assigned_mothers(
        self,
        user: User,
        today: date | None = None,
        status: str | None = None,
    ) -> list[MotherSummary]:
        """
        Mothers assigned to a CHW, each with her children's schedules.

        A mother is `defaulting` when any child is behind or has an overdue
        dose. `status` filters the list (`all` or None keeps everything).
        """
        require_permission(user, Permission.MOTHERS_READ)
        self._require_people()

        mothers = self.users.mothers_for_chw(user.id)
        children = self.children.children_for_parents(m.id for m in mothers)
        schedules = dict(zip(
            (c.id for c in children),
            self.schedules_for_children(children, today),
        ))

        summaries = []
        for mother in mothers:
            kids = []
            for child in (c for c in children if c.parent_id == mother.id):
                schedule = schedules[child.id]
                next_dose = schedule.next_dose
                kids.append(ChildSummary(
                    id=child.id,
                    name=child.name,
                    date_of_birth=child.date_of_birth,
                    gender=child.gender.value,
                    status=schedule.vaccination_status,
                    upcoming_vaccines=schedule.due_doses,
                    next_vaccine=next_dose.display_name if next_dose else FULLY_VACCINATED,
                    due_date=next_dose.due_date if next_dose else None,
                    days_left=next_dose.days_left if next_dose else None,
                ))

            defaulting = any(
                k.status == ChildVaccinationStatus.BEHIND
                or any(d.is_overdue for d in k.upcoming_vaccines)
                for k in kids
            )
            summaries.append(MotherSummary(
                id=mother.id,
                name=mother.name,
                phone=mother.phone or "N/A",
                status=MotherStatus.DEFAULTING if defaulting else MotherStatus.UP_TO_DATE,
                children=kids,
            ))

        if status and status != "all":
            summaries = [s for s in summaries if s.status == status]
        return summaries

    def chw_dashboard(self, user: User, today: date | None = None) -> ChwDashboard:
        """Assigned mothers, defaulters and coverage for a CHW."""
        require_permission(user, Permission.DEFAULTERS_READ)
        self._require_people()

        mothers = self.users.mothers_for_chw(user.id)
        children = self.children.children_for_parents(m.id for m in mothers)
        schedules = self.schedules_for_children(children, today)

        behind = sum(1 for s in schedules if s.vaccination_status == ChildVaccinationStatus.BEHIND)
        covered = sum(1 for s in schedules if s.vaccination_status in COVERED_STATUSES)
        return ChwDashboard(
            assigned_mothers=len(mothers),
            total_children=len(children),
            defaulters=behind,
            up_to_date=covered,
            coverage_rate=coverage_rate(covered, len(children)),
        )
