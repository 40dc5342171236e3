"""
Supabase connection for Chanjo.

Two shared connections: the anon one (Row Level Security applies) for
reads and per-user work, and the service-role one for seeding the
catalog and batch status write-back.
"""

from typing import Optional

from supabase import create_client, Client

from chanjo.config import Settings, get_settings


class SupabaseClient:
  """Wraps a supabase Client; repositories only use table()."""

  def __init__(self, client: Client):
    self._client = client

  @classmethod
  def from_settings(cls, settings: Settings, admin: bool = False) -> "SupabaseClient":
    """Connect with the anon key, or the service key when `admin`."""
    settings.validate()
    key = settings.supabase_anon_key
    if admin:
      if not settings.supabase_service_key:
        raise ValueError("SUPABASE_SERVICE_KEY environment variable not set")
      key = settings.supabase_service_key
    return cls(create_client(settings.supabase_url, key))

  @property
  def client(self) -> Client:
    return self._client

  def table(self, name: str):
    """Start a query on a table."""
    return self._client.table(name)


# =============================================================================
# Shared connections
# =============================================================================

_connections: dict = {}


def _connection(admin: bool) -> SupabaseClient:
  if admin not in _connections:
    _connections[admin] = SupabaseClient.from_settings(get_settings(), admin=admin)
  return _connections[admin]


def get_client() -> SupabaseClient:
  """Shared anon-key connection."""
  return _connection(admin=False)


def get_admin_client() -> SupabaseClient:
  """Shared service-role connection. Bypasses Row Level Security."""
  return _connection(admin=True)


def is_configured() -> bool:
  return get_settings().is_configured


def reset_clients() -> None:
  """Forget shared connections so the next call reconnects."""
  _connections.clear()
