"""
Immunization schedule engine.

Given a child's birth date, the active vaccine catalog and the child's
vaccination history, work out the next dose each vaccine still owes, when
it falls due, and whether the child is up to date or behind.

Everything here is a pure function of its arguments: no I/O, no hidden
state, and `today` can be passed in so results are reproducible.

Due dates use calendar months. Adding months to a date that does not exist
in the target month clamps to that month's last day (Jan 31 + 1 month is
Feb 28, or Feb 29 in a leap year); weeks are then added as whole days.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping, Sequence

from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

from chanjo.errors import SchedulePreconditionError
from chanjo.models import (
    Child,
    ChildVaccinationStatus,
    DueDose,
    DueStatus,
    RecommendedAge,
    RecordStatus,
    ScheduleStatus,
    VaccinationRecord,
    VaccineDefinition,
)

logger = logging.getLogger(__name__)

# A dose more than this many days overdue marks the child as behind.
DEFAULTER_GRACE_DAYS = 14

# Child labels that count towards coverage.
COVERED_STATUSES = frozenset({
    ChildVaccinationStatus.UP_TO_DATE,
    ChildVaccinationStatus.COMPLETED,
})


# =============================================================================
# DATE ARITHMETIC
# =============================================================================


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month."""
    return start + relativedelta(months=months)


def due_date_for(date_of_birth: date, age: RecommendedAge) -> date:
    """Birth date plus `age.months` calendar months plus `age.weeks` weeks."""
    return add_months(date_of_birth, age.months) + timedelta(days=age.weeks * 7)


def age_in_months(date_of_birth: date, today: date | None = None) -> int:
    """Whole calendar months elapsed since birth (0 for a future date)."""
    today = today or date.today()
    if today <= date_of_birth:
        return 0
    delta = relativedelta(today, date_of_birth)
    return delta.years * 12 + delta.months


def days_between(start: date, end: date) -> int:
    """
    Whole days from `start` to `end`, rounded up.

    Both ends are calendar dates, so the difference is already an integer
    number of days and ceiling division leaves it unchanged.
    """
    return math.ceil((end - start) / timedelta(days=1))


# =============================================================================
# INPUT COERCION
# =============================================================================


def _as_day(value: date) -> date:
    """Drop the time part of a datetime."""
    return value.date() if isinstance(value, datetime) else value


def _birth_date(child: Child | date) -> date:
    if isinstance(child, Child):
        return child.date_of_birth
    if isinstance(child, date):
        return _as_day(child)
    raise SchedulePreconditionError(
        f"Expected a Child or a date of birth, got {type(child).__name__}"
    )


def _as_vaccine(entry: VaccineDefinition | Mapping[str, Any]) -> VaccineDefinition:
    if isinstance(entry, VaccineDefinition):
        return entry
    try:
        return VaccineDefinition.model_validate(entry)
    except ValidationError as e:
        name = entry.get("code") or entry.get("name") or "<unnamed>"
        raise SchedulePreconditionError(f"Invalid catalog entry {name}: {e}") from e


def _as_record(entry: VaccinationRecord | Mapping[str, Any]) -> VaccinationRecord:
    if isinstance(entry, VaccinationRecord):
        return entry
    try:
        return VaccinationRecord.model_validate(entry)
    except ValidationError as e:
        raise SchedulePreconditionError(f"Invalid vaccination record: {e}") from e


def index_history(
    history: Iterable[VaccinationRecord | Mapping[str, Any]],
    count_completed_only: bool = False,
) -> dict[str, list[VaccinationRecord]]:
    """
    Group history by vaccine id.

    By default every record counts as a dose given, whatever its status.
    With `count_completed_only`, scheduled and missed records are ignored.
    """
    by_vaccine: dict[str, list[VaccinationRecord]] = {}
    for entry in history:
        record = _as_record(entry)
        if count_completed_only and record.status != RecordStatus.COMPLETED:
            continue
        by_vaccine.setdefault(record.vaccine_id, []).append(record)
    return by_vaccine


def recommended_age_for(vaccine: VaccineDefinition, sequence: int) -> RecommendedAge | None:
    """Recommended age for a dose, or None when the series has no such dose."""
    if sequence == 1:
        return vaccine.recommended_age
    booster = vaccine.booster_for(sequence)
    return booster.recommended_age if booster else None


def display_name_for(vaccine: VaccineDefinition, sequence: int) -> str:
    if sequence > 1:
        return f"{vaccine.name} (Dose {sequence})"
    return vaccine.name


# =============================================================================
# SCHEDULE
# =============================================================================


def compute_upcoming_doses(
    child: Child | date,
    catalog: Sequence[VaccineDefinition | Mapping[str, Any]],
    history: Iterable[VaccinationRecord | Mapping[str, Any]],
    today: date | None = None,
    count_completed_only: bool = False,
) -> list[DueDose]:
    """
    Compute the next due dose for every vaccine in the catalog.

    The catalog must already be filtered to active vaccines. Vaccines whose
    series is complete are omitted. The result is sorted by due date; doses
    due on the same day keep catalog order.

    Raises:
      SchedulePreconditionError: the birth date is after `today`, or a
        catalog or history entry cannot be validated.
    """
    today = _as_day(today) if today else date.today()
    date_of_birth = _birth_date(child)
    if date_of_birth > today:
        raise SchedulePreconditionError(
            f"Date of birth {date_of_birth.isoformat()} is after {today.isoformat()}"
        )

    records_by_vaccine = index_history(history, count_completed_only)
    due_doses: list[DueDose] = []

    for entry in catalog:
        vaccine = _as_vaccine(entry)
        records = records_by_vaccine.get(vaccine.id, [])
        sequence = len(records) + 1

        age = recommended_age_for(vaccine, sequence)
        if age is None:
            logger.debug("%s series complete after %d doses", vaccine.code, len(records))
            continue

        # Out-of-order history can already hold this sequence number.
        if any(r.dose_sequence == sequence for r in records):
            continue

        due_date = due_date_for(date_of_birth, age)
        days_left = days_between(today, due_date)
        due_doses.append(DueDose(
            vaccine_id=vaccine.id,
            display_name=display_name_for(vaccine, sequence),
            dose_sequence=sequence,
            due_date=due_date,
            days_left=days_left,
            status=DueStatus.OVERDUE if days_left < 0 else DueStatus.UPCOMING,
        ))

    # sorted() is stable, so same-day doses stay in catalog order
    return sorted(due_doses, key=lambda d: d.due_date)


def compute_status(
    due_doses: Sequence[DueDose],
    grace_days: int = DEFAULTER_GRACE_DAYS,
) -> ScheduleStatus:
    """
    Aggregate status from a list of due doses.

    No due doses means nothing is owed (`completed`). A dose more than
    `grace_days` overdue makes the child `behind`; exactly `grace_days`
    overdue is still `up-to-date`.
    """
    if not due_doses:
        return ScheduleStatus.COMPLETED
    if any(d.days_left < -grace_days for d in due_doses):
        return ScheduleStatus.BEHIND
    return ScheduleStatus.UP_TO_DATE


def derive_child_status(
    history: Sequence[Any],
    due_doses: Sequence[DueDose],
    grace_days: int = DEFAULTER_GRACE_DAYS,
) -> ChildVaccinationStatus:
    """Label to persist on the child: `not-started` until a dose is on record."""
    if not history:
        return ChildVaccinationStatus.NOT_STARTED
    return ChildVaccinationStatus(compute_status(due_doses, grace_days).value)


def coverage_rate(completed: int, total: int) -> int:
    """
    Percentage of `completed` over `total`, rounded half up.

    Returns 0 when there is nothing to cover.
    """
    if total <= 0:
        return 0
    return math.floor(completed * 100 / total + 0.5)
