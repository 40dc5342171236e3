"""
Database module for Chanjo.

Provides the Supabase client, table repositories and an in-memory store
that implements the same data-access methods.
"""

from chanjo.db.client import get_client, get_admin_client, is_configured, SupabaseClient
from chanjo.db.memory import Dataset, InMemoryStore
from chanjo.db.repositories import (
  ChildRepository,
  UserRepository,
  VaccinationRecordRepository,
  VaccineRepository,
)

__all__ = [
  "get_client",
  "get_admin_client",
  "is_configured",
  "SupabaseClient",
  "Dataset",
  "InMemoryStore",
  "ChildRepository",
  "UserRepository",
  "VaccinationRecordRepository",
  "VaccineRepository",
]
