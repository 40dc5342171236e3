"""
Core data models for Chanjo.

These Pydantic models define vaccines, children and their vaccination
history, plus the due-dose output of the schedule engine. Database rows
and JSON datasets are validated into these models before any schedule
computation runs.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


def generate_id() -> str:
    """Generate a unique identifier."""
    return str(uuid4())


# =============================================================================
# ENUMS
# =============================================================================


class VaccineRoute(str, Enum):
    ORAL = "Oral"
    INTRAMUSCULAR = "Intramuscular"
    SUBCUTANEOUS = "Subcutaneous"
    INTRADERMAL = "Intradermal"


class RecordStatus(str, Enum):
    COMPLETED = "completed"
    SCHEDULED = "scheduled"
    MISSED = "missed"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ScheduleStatus(str, Enum):
    """Aggregate status computed from a child's due doses."""
    COMPLETED = "completed"
    UP_TO_DATE = "up-to-date"
    BEHIND = "behind"


class ChildVaccinationStatus(str, Enum):
    """Label persisted on the child record."""
    NOT_STARTED = "not-started"
    UP_TO_DATE = "up-to-date"
    BEHIND = "behind"
    COMPLETED = "completed"


class MotherStatus(str, Enum):
    """A mother is defaulting when any of her children is."""
    DEFAULTING = "defaulting"
    UP_TO_DATE = "up-to-date"


class DueStatus(str, Enum):
    UPCOMING = "upcoming"
    OVERDUE = "overdue"


# =============================================================================
# VACCINE CATALOG
# =============================================================================


class RecommendedAge(BaseModel):
    """
    Age at which a dose is due.

    Weeks are not folded into months: the due date is birth date plus
    `months` calendar months, then plus `weeks * 7` days.
    """
    months: int = Field(default=0, ge=0)
    weeks: int = Field(default=0, ge=0)

    def __str__(self) -> str:
        if self.months and self.weeks:
            return f"{self.months}m {self.weeks}w"
        if self.months:
            return f"{self.months} months"
        if self.weeks:
            return f"{self.weeks} weeks"
        return "At birth"


class BoosterDose(BaseModel):
    """A second or later dose of the same vaccine."""
    sequence: int = Field(ge=2)
    recommended_age: RecommendedAge


class VaccineDefinition(BaseModel):
    """A vaccine in the catalog, with its primary dose and boosters."""
    id: str = Field(default_factory=generate_id)
    name: str
    code: str
    description: str = ""
    protects_against: list[str] = Field(default_factory=list)
    due_at_birth: bool = False
    recommended_age: RecommendedAge
    dosage: str | None = None
    route: VaccineRoute | None = None
    site: str | None = None
    booster_doses: list[BoosterDose] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("booster_doses")
    @classmethod
    def _unique_sequences(cls, boosters: list[BoosterDose]) -> list[BoosterDose]:
        seen = set()
        for booster in boosters:
            if booster.sequence in seen:
                raise ValueError(f"duplicate booster sequence {booster.sequence}")
            seen.add(booster.sequence)
        return boosters

    @property
    def total_doses(self) -> int:
        """Doses in the series when the booster sequences are contiguous."""
        return 1 + len(self.booster_doses)

    def booster_for(self, sequence: int) -> BoosterDose | None:
        """Return the booster entry for a dose sequence, if any."""
        for booster in self.booster_doses:
            if booster.sequence == sequence:
                return booster
        return None


# =============================================================================
# CHILDREN AND HISTORY
# =============================================================================


class Child(BaseModel):
    """A registered child."""
    id: str = Field(default_factory=generate_id)
    parent_id: str | None = None
    name: str = Field(min_length=1, max_length=100)
    date_of_birth: date
    gender: Gender = Gender.OTHER
    birth_weight: float | None = Field(default=None, ge=0.5, le=6)
    birth_height: float | None = Field(default=None, ge=30, le=70)
    vaccination_status: ChildVaccinationStatus = ChildVaccinationStatus.NOT_STARTED
    allergies: list[str] = Field(default_factory=list)
    special_needs: str | None = Field(default=None, max_length=500)
    is_active: bool = True

    @field_validator("date_of_birth")
    @classmethod
    def _not_in_future(cls, value: date) -> date:
        if value > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return value

    @property
    def age_in_months(self) -> int:
        from chanjo.engines.schedule import age_in_months
        return age_in_months(self.date_of_birth)


class VaccinationRecord(BaseModel):
    """A dose recorded against a child."""
    id: str = Field(default_factory=generate_id)
    child_id: str
    vaccine_id: str
    dose_sequence: int = Field(ge=1)
    date_given: date
    status: RecordStatus = RecordStatus.COMPLETED

    # Administration
    given_by: str | None = None
    batch_number: str | None = None
    health_facility: str | None = None
    next_due_date: date | None = None

    # Observations
    notes: str | None = None
    adverse_reactions: str | None = None
    weight_at_vaccination: float | None = None
    height_at_vaccination: float | None = None


# =============================================================================
# ENGINE OUTPUT
# =============================================================================


class DueDose(BaseModel):
    """The next dose a child owes for one vaccine."""
    vaccine_id: str
    display_name: str
    dose_sequence: int
    due_date: date
    days_left: int  # negative means overdue
    status: DueStatus

    @property
    def is_overdue(self) -> bool:
        return self.status == DueStatus.OVERDUE


class ChildSchedule(BaseModel):
    """A child's due doses with the derived aggregate status."""
    child_id: str
    due_doses: list[DueDose] = Field(default_factory=list)
    status: ScheduleStatus
    vaccination_status: ChildVaccinationStatus

    @property
    def next_dose(self) -> Optional[DueDose]:
        return self.due_doses[0] if self.due_doses else None
