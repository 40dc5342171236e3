"""
Access control for Chanjo.

Provides role capability sets and permission checks for services.
"""

from chanjo.auth.permissions import (
  ROLE_PERMISSIONS,
  has_permission,
  permissions_for,
  require_any_role,
  require_permission,
)

__all__ = [
  "ROLE_PERMISSIONS",
  "has_permission",
  "permissions_for",
  "require_any_role",
  "require_permission",
]
