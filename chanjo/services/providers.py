"""
Data-access contracts used by the services.

Both the Supabase repositories and the in-memory store satisfy these
protocols, so services never know which backend they are talking to.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Protocol

from chanjo.models import (
    Child,
    ChildVaccinationStatus,
    RecordStatus,
    User,
    VaccinationRecord,
    VaccineDefinition,
)


class CatalogProvider(Protocol):
    def list_active_vaccines(self) -> list[VaccineDefinition]:
        """Active vaccines, sorted by primary-dose age in months."""
        ...


class HistoryProvider(Protocol):
    def records_for_child(self, child_id: str) -> list[VaccinationRecord]:
        ...

    def records_for_children(self, child_ids: Iterable[str]) -> dict[str, list[VaccinationRecord]]:
        """Records grouped by child id; every requested id is present."""
        ...

    def list_records(
        self,
        vaccine_id: str | None = None,
        status: RecordStatus | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[VaccinationRecord]:
        """Records filtered by vaccine, status and inclusive date range."""
        ...


class ChildProvider(Protocol):
    def get_child(self, child_id: str) -> Child | None:
        ...

    def children_for_parents(self, parent_ids: Iterable[str]) -> list[Child]:
        ...

    def list_children(self) -> list[Child]:
        ...


class UserProvider(Protocol):
    def get_user(self, user_id: str) -> User | None:
        ...

    def mothers_for_chw(self, chw_id: str) -> list[User]:
        """Active mothers assigned to a community health worker."""
        ...


class StatusWriter(Protocol):
    def write_status(self, child_id: str, status: ChildVaccinationStatus) -> None:
        ...
