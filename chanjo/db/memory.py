"""
In-memory store for Chanjo.

Holds vaccines, children, records and users in dicts. Used by the CLI to
work from a JSON dataset, and by tests. Implements the same provider
methods as the Supabase repositories.
"""

import json
import threading
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Union

from pydantic import BaseModel, Field

from chanjo.models import (
  Child,
  ChildVaccinationStatus,
  RecordStatus,
  Role,
  User,
  VaccinationRecord,
  VaccineDefinition,
)


class Dataset(BaseModel):
  """JSON dataset layout. `vaccines` may be omitted to use a bundled schedule."""

  vaccines: list[VaccineDefinition] = Field(default_factory=list)
  children: list[Child] = Field(default_factory=list)
  records: list[VaccinationRecord] = Field(default_factory=list)
  users: list[User] = Field(default_factory=list)


class InMemoryStore:
  """Dict-backed store implementing every provider protocol."""

  def __init__(
    self,
    vaccines: Iterable[VaccineDefinition] = (),
    children: Iterable[Child] = (),
    records: Iterable[VaccinationRecord] = (),
    users: Iterable[User] = (),
  ):
    self._lock = threading.Lock()
    self.vaccines: dict[str, VaccineDefinition] = {v.id: v for v in vaccines}
    self.children: dict[str, Child] = {c.id: c for c in children}
    self.records: list[VaccinationRecord] = list(records)
    self.users: dict[str, User] = {u.id: u for u in users}

  @classmethod
  def from_dataset(cls, dataset: Dataset, default_schedule: Optional[str] = "kepi") -> "InMemoryStore":
    """Build a store from a dataset, falling back to a bundled catalog."""
    vaccines = dataset.vaccines
    if not vaccines and default_schedule:
      from knowledge.schedules import load_catalog
      vaccines = load_catalog(default_schedule, active_only=False)
    return cls(vaccines, dataset.children, dataset.records, dataset.users)

  @classmethod
  def from_json(cls, path: Union[str, Path], default_schedule: Optional[str] = "kepi") -> "InMemoryStore":
    """Load a store from a JSON dataset file."""
    data = json.loads(Path(path).read_text())
    return cls.from_dataset(Dataset.model_validate(data), default_schedule)

  # -------------------------------------------------------------------------
  # Catalog
  # -------------------------------------------------------------------------

  def list_active_vaccines(self) -> list[VaccineDefinition]:
    active = [v for v in self.vaccines.values() if v.is_active]
    return sorted(active, key=lambda v: v.recommended_age.months)

  def get_vaccine(self, vaccine_id: str) -> Optional[VaccineDefinition]:
    return self.vaccines.get(vaccine_id)

  # -------------------------------------------------------------------------
  # History
  # -------------------------------------------------------------------------

  def add_record(self, record: VaccinationRecord) -> VaccinationRecord:
    with self._lock:
      self.records.append(record)
    return record

  def records_for_child(self, child_id: str) -> list[VaccinationRecord]:
    return sorted(
      (r for r in self.records if r.child_id == child_id),
      key=lambda r: r.date_given,
    )

  def records_for_children(self, child_ids: Iterable[str]) -> dict[str, list[VaccinationRecord]]:
    grouped: dict[str, list[VaccinationRecord]] = {cid: [] for cid in child_ids}
    for record in sorted(self.records, key=lambda r: r.date_given):
      if record.child_id in grouped:
        grouped[record.child_id].append(record)
    return grouped

  def list_records(
    self,
    vaccine_id: Optional[str] = None,
    status: Optional[RecordStatus] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
  ) -> list[VaccinationRecord]:
    results = []
    for record in self.records:
      if vaccine_id and record.vaccine_id != vaccine_id:
        continue
      if status and record.status != RecordStatus(status):
        continue
      if start and record.date_given < start:
        continue
      if end and record.date_given > end:
        continue
      results.append(record)
    return sorted(results, key=lambda r: r.date_given)

  # -------------------------------------------------------------------------
  # Children
  # -------------------------------------------------------------------------

  def add_child(self, child: Child) -> Child:
    with self._lock:
      self.children[child.id] = child
    return child

  def get_child(self, child_id: str) -> Optional[Child]:
    return self.children.get(child_id)

  def children_for_parents(self, parent_ids: Iterable[str]) -> list[Child]:
    parents = set(parent_ids)
    found = [c for c in self.children.values() if c.parent_id in parents and c.is_active]
    return sorted(found, key=lambda c: c.date_of_birth)

  def list_children(self) -> list[Child]:
    return [c for c in self.children.values() if c.is_active]

  def write_status(self, child_id: str, status: ChildVaccinationStatus) -> None:
    with self._lock:
      child = self.children.get(child_id)
      if child is not None:
        self.children[child_id] = child.model_copy(
          update={"vaccination_status": ChildVaccinationStatus(status)}
        )

  # -------------------------------------------------------------------------
  # Users
  # -------------------------------------------------------------------------

  def get_user(self, user_id: str) -> Optional[User]:
    return self.users.get(user_id)

  def mothers_for_chw(self, chw_id: str) -> list[User]:
    return [
      u for u in self.users.values()
      if u.role == Role.MOTHER and u.assigned_chw_id == chw_id and u.is_active
    ]
