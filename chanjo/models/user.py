"""
User models for Chanjo.

Mothers, community health workers, hospital staff and administrators all
share one user record, distinguished by a closed role enum.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, EmailStr


class Role(str, Enum):
  """User roles for access control."""

  ADMIN = "admin"
  HEALTH_WORKER = "health_worker"    # Community health worker (CHW)
  HOSPITAL_STAFF = "hospital_staff"
  MOTHER = "mother"


class Permission(str, Enum):
  """Capabilities granted to roles, as `resource:action`."""

  USERS_READ = "users:read"
  USERS_WRITE = "users:write"
  USERS_DELETE = "users:delete"
  VACCINES_READ = "vaccines:read"
  VACCINES_WRITE = "vaccines:write"
  VACCINES_DELETE = "vaccines:delete"
  CHILDREN_READ = "children:read"
  CHILDREN_WRITE = "children:write"
  CHILDREN_DELETE = "children:delete"
  RECORDS_READ = "records:read"
  RECORDS_WRITE = "records:write"
  RECORDS_DELETE = "records:delete"
  REPORTS_READ = "reports:read"
  REPORTS_WRITE = "reports:write"
  HOSPITALS_READ = "hospitals:read"
  HOSPITALS_WRITE = "hospitals:write"
  HOSPITALS_DELETE = "hospitals:delete"
  STOCK_READ = "stock:read"
  STOCK_WRITE = "stock:write"
  STOCK_DELETE = "stock:delete"
  COVERAGE_READ = "coverage:read"
  COVERAGE_WRITE = "coverage:write"
  COVERAGE_DELETE = "coverage:delete"
  MOTHERS_READ = "mothers:read"
  DEFAULTERS_READ = "defaulters:read"
  SCHEDULE_READ = "schedule:read"
  SCHEDULE_WRITE = "schedule:write"
  APPOINTMENTS_READ = "appointments:read"
  APPOINTMENTS_WRITE = "appointments:write"
  REMINDERS_READ = "reminders:read"
  PROFILE_READ = "profile:read"
  PROFILE_WRITE = "profile:write"


class User(BaseModel):
  """
  User profile.

  Mothers carry `assigned_chw_id`; hospital staff carry `hospital_id`.
  """

  id: str
  name: str
  email: Optional[EmailStr] = None
  phone: Optional[str] = None
  role: Role = Role.MOTHER
  assigned_chw_id: Optional[str] = None
  hospital_id: Optional[str] = None
  is_active: bool = True
  last_login: Optional[datetime] = None
  created_at: datetime = Field(default_factory=datetime.utcnow)

  class Config:
    from_attributes = True

  @property
  def is_admin(self) -> bool:
    """Check if user is an admin."""
    return self.role == Role.ADMIN

  @property
  def is_health_worker(self) -> bool:
    """Check if user is a community health worker."""
    return self.role == Role.HEALTH_WORKER

  @property
  def permissions(self) -> frozenset:
    """Permissions granted by the user's role."""
    from chanjo.auth.permissions import permissions_for
    return permissions_for(self.role)

  def can(self, permission: Permission) -> bool:
    """Check whether the user's role grants a permission."""
    return permission in self.permissions
