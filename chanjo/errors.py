"""
Exception types raised by Chanjo.

Empty data (no history, empty catalog) is never an error; these are
reserved for broken preconditions, missing entities and access checks.
"""


class ChanjoError(Exception):
  """Base class for all Chanjo errors."""


class SchedulePreconditionError(ChanjoError, ValueError):
  """Input to the schedule engine violates a precondition."""


class NotFoundError(ChanjoError, LookupError):
  """A child, user or vaccine could not be found."""

  def __init__(self, kind: str, key: str):
    self.kind = kind
    self.key = key
    super().__init__(f"{kind} not found: {key}")


class PermissionDeniedError(ChanjoError, PermissionError):
  """The acting user's role lacks a required permission."""

  def __init__(self, role: str, permission: str):
    self.role = role
    self.permission = permission
    super().__init__(f"Role '{role}' lacks permission '{permission}'")
