"""
Role capability sets.

Each role maps to a fixed, immutable set of permissions. Services call
require_permission() with the acting user before touching data.
"""

from typing import Mapping

from chanjo.errors import PermissionDeniedError
from chanjo.models.user import Permission as P, Role, User


ROLE_PERMISSIONS: Mapping[Role, frozenset] = {
  Role.ADMIN: frozenset({
    P.USERS_READ, P.USERS_WRITE, P.USERS_DELETE,
    P.VACCINES_READ, P.VACCINES_WRITE, P.VACCINES_DELETE,
    P.CHILDREN_READ, P.CHILDREN_WRITE, P.CHILDREN_DELETE,
    P.RECORDS_READ, P.RECORDS_WRITE, P.RECORDS_DELETE,
    P.REPORTS_READ, P.REPORTS_WRITE,
    P.HOSPITALS_READ, P.HOSPITALS_WRITE, P.HOSPITALS_DELETE,
    P.STOCK_READ, P.STOCK_WRITE, P.STOCK_DELETE,
    P.COVERAGE_READ, P.COVERAGE_WRITE, P.COVERAGE_DELETE,
  }),
  Role.HEALTH_WORKER: frozenset({
    P.USERS_READ,
    P.VACCINES_READ,
    P.CHILDREN_READ, P.CHILDREN_WRITE,
    P.RECORDS_READ, P.RECORDS_WRITE,
    P.REPORTS_READ, P.REPORTS_WRITE,
    P.MOTHERS_READ,      # assigned mothers only
    P.DEFAULTERS_READ,
    P.SCHEDULE_READ, P.SCHEDULE_WRITE,
  }),
  Role.HOSPITAL_STAFF: frozenset({
    P.USERS_READ,
    P.VACCINES_READ,
    P.STOCK_READ, P.STOCK_WRITE,
    P.RECORDS_READ, P.RECORDS_WRITE,
    P.CHILDREN_READ,
    P.APPOINTMENTS_READ, P.APPOINTMENTS_WRITE,
    P.COVERAGE_READ, P.COVERAGE_WRITE,
    P.HOSPITALS_READ,    # own facility
    P.REPORTS_READ, P.REPORTS_WRITE,
  }),
  Role.MOTHER: frozenset({
    P.CHILDREN_READ, P.CHILDREN_WRITE,
    P.RECORDS_READ,
    P.SCHEDULE_READ,
    P.REMINDERS_READ,
    P.PROFILE_READ, P.PROFILE_WRITE,
  }),
}


def permissions_for(role: Role) -> frozenset:
  """Get the permission set for a role."""
  return ROLE_PERMISSIONS[Role(role)]


def has_permission(role: Role, permission: P) -> bool:
  """Check if a role grants a permission."""
  return P(permission) in permissions_for(role)


def require_permission(user: User, permission: P) -> User:
  """
  Require the user's role to grant a permission.

  Raises PermissionDeniedError otherwise; returns the user so calls can
  be chained.
  """
  if not has_permission(user.role, permission):
    raise PermissionDeniedError(user.role.value, P(permission).value)
  return user


def require_any_role(user: User, *roles: Role) -> User:
  """Require the user to hold one of the given roles."""
  if user.role not in roles:
    allowed = ", ".join(r.value for r in roles)
    raise PermissionDeniedError(user.role.value, f"role in ({allowed})")
  return user
