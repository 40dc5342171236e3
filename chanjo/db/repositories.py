"""
Repository classes for database operations.

Each repository handles one table and converts rows to the Pydantic models
the services work with. Together they satisfy the provider protocols in
chanjo.services.providers.
"""

import logging
from datetime import date
from typing import Any, Iterable, Optional

from chanjo.db.client import get_client, get_admin_client, SupabaseClient
from chanjo.models import (
  Child,
  ChildVaccinationStatus,
  RecordStatus,
  Role,
  User,
  VaccinationRecord,
  VaccineDefinition,
)

logger = logging.getLogger(__name__)


class BaseRepository:
  """Base class for all repositories."""

  table_name: str = ""

  def __init__(self, client: Optional[SupabaseClient] = None, use_admin: bool = False):
    """
    Initialize repository with optional client.

    Args:
      client: Supabase client to use. If None, gets default client.
      use_admin: If True and no client provided, use admin client.
    """
    if client:
      self._client = client
    elif use_admin:
      self._client = get_admin_client()
    else:
      self._client = get_client()

  @property
  def table(self):
    """Get the table reference."""
    return self._client.table(self.table_name)

  def _to_dict(self, obj: Any) -> dict:
    """Convert object to dict for storage."""
    if hasattr(obj, "model_dump"):
      return obj.model_dump(mode="json", exclude_none=True)
    elif isinstance(obj, dict):
      return obj
    else:
      raise ValueError(f"Cannot convert {type(obj)} to dict")

  def _one(self, column: str, value: str) -> Optional[dict]:
    """Fetch a single row by column value, or None."""
    response = self.table.select("*").eq(column, value).maybe_single().execute()
    if response is None or not response.data:
      logger.warning("%s: no row where %s=%s", self.table_name, column, value)
      return None
    return response.data


class VaccineRepository(BaseRepository):
  """Repository for the vaccine catalog."""

  table_name = "vaccines"

  def get_by_id(self, vaccine_id: str) -> Optional[VaccineDefinition]:
    """Get vaccine by ID."""
    row = self._one("id", vaccine_id)
    return VaccineDefinition.model_validate(row) if row else None

  def get_by_code(self, code: str) -> Optional[VaccineDefinition]:
    """Get vaccine by its catalog code."""
    row = self._one("code", code.upper())
    return VaccineDefinition.model_validate(row) if row else None

  def list_active_vaccines(self) -> list[VaccineDefinition]:
    """Active vaccines, sorted by primary-dose age in months."""
    response = self.table.select("*").eq("is_active", True).execute()
    vaccines = [VaccineDefinition.model_validate(row) for row in response.data or []]
    return sorted(vaccines, key=lambda v: v.recommended_age.months)

  def upsert_many(self, vaccines: Iterable[VaccineDefinition]) -> list[dict]:
    """Insert or update vaccines, matching on code."""
    rows = [self._to_dict(v) for v in vaccines]
    response = self.table.upsert(rows, on_conflict="code").execute()
    return response.data or []


class VaccinationRecordRepository(BaseRepository):
  """Repository for vaccination history."""

  table_name = "vaccination_records"

  def records_for_child(self, child_id: str) -> list[VaccinationRecord]:
    """Get all records for a child, oldest first."""
    response = self.table.select("*").eq("child_id", child_id).order("date_given").execute()
    return [VaccinationRecord.model_validate(row) for row in response.data or []]

  def records_for_children(self, child_ids: Iterable[str]) -> dict[str, list[VaccinationRecord]]:
    """Get records for many children in one query, grouped by child."""
    child_ids = list(child_ids)
    grouped: dict[str, list[VaccinationRecord]] = {cid: [] for cid in child_ids}
    if not child_ids:
      return grouped
    response = self.table.select("*").in_("child_id", child_ids).order("date_given").execute()
    for row in response.data or []:
      record = VaccinationRecord.model_validate(row)
      grouped.setdefault(record.child_id, []).append(record)
    return grouped

  def list_records(
    self,
    vaccine_id: Optional[str] = None,
    status: Optional[RecordStatus] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
  ) -> list[VaccinationRecord]:
    """Get records filtered by vaccine, status and date range (inclusive)."""
    query = self.table.select("*")
    if vaccine_id:
      query = query.eq("vaccine_id", vaccine_id)
    if status:
      query = query.eq("status", RecordStatus(status).value)
    if start:
      query = query.gte("date_given", start.isoformat())
    if end:
      query = query.lte("date_given", end.isoformat())
    response = query.order("date_given").execute()
    return [VaccinationRecord.model_validate(row) for row in response.data or []]

  def create(self, record: VaccinationRecord) -> Optional[dict]:
    """Record a dose."""
    response = self.table.insert(self._to_dict(record)).execute()
    return response.data[0] if response.data else None


class ChildRepository(BaseRepository):
  """Repository for children."""

  table_name = "children"

  def get_child(self, child_id: str) -> Optional[Child]:
    """Get child by ID."""
    row = self._one("id", child_id)
    return Child.model_validate(row) if row else None

  def children_for_parents(self, parent_ids: Iterable[str]) -> list[Child]:
    """Get active children of the given parents."""
    parent_ids = list(parent_ids)
    if not parent_ids:
      return []
    response = (
      self.table.select("*")
      .in_("parent_id", parent_ids)
      .eq("is_active", True)
      .order("date_of_birth")
      .execute()
    )
    return [Child.model_validate(row) for row in response.data or []]

  def list_children(self) -> list[Child]:
    """Get all active children."""
    response = self.table.select("*").eq("is_active", True).execute()
    return [Child.model_validate(row) for row in response.data or []]

  def create(self, child: Child) -> Optional[dict]:
    """Register a child."""
    response = self.table.insert(self._to_dict(child)).execute()
    return response.data[0] if response.data else None

  def write_status(self, child_id: str, status: ChildVaccinationStatus) -> None:
    """Persist the derived vaccination status label."""
    self.table.update({
      "vaccination_status": ChildVaccinationStatus(status).value,
    }).eq("id", child_id).execute()


class UserRepository(BaseRepository):
  """Repository for user profiles."""

  table_name = "users"

  def get_user(self, user_id: str) -> Optional[User]:
    """Get user by ID."""
    row = self._one("id", user_id)
    return User.model_validate(row) if row else None

  def mothers_for_chw(self, chw_id: str) -> list[User]:
    """Get active mothers assigned to a community health worker."""
    response = (
      self.table.select("*")
      .eq("role", Role.MOTHER.value)
      .eq("assigned_chw_id", chw_id)
      .eq("is_active", True)
      .execute()
    )
    return [User.model_validate(row) for row in response.data or []]
