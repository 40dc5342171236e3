"""
Runtime configuration for Chanjo.

Settings are read from environment variables once and cached; tests can
call reset_settings() to pick up a patched environment.
"""

import logging
import os
from typing import Optional

from rich.logging import RichHandler


def _env_bool(name: str, default: bool = False) -> bool:
  value = os.environ.get(name)
  if value is None:
    return default
  return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
  value = os.environ.get(name)
  if value is None or value.strip() == "":
    return default
  try:
    return int(value)
  except ValueError:
    raise ValueError(f"{name} must be an integer, got {value!r}")


class Settings:
  """Configuration for the schedule engine, services and database."""

  def __init__(self):
    # Database
    self.supabase_url = os.environ.get("SUPABASE_URL")
    self.supabase_anon_key = os.environ.get("SUPABASE_ANON_KEY")
    self.supabase_service_key = os.environ.get("SUPABASE_SERVICE_KEY")

    # Schedule rules
    self.count_completed_only = _env_bool("CHANJO_COUNT_COMPLETED_ONLY")
    self.defaulter_grace_days = _env_int("CHANJO_DEFAULTER_GRACE_DAYS", 14)

    # Reporting
    self.coverage_target = _env_int("CHANJO_COVERAGE_TARGET", 90)

    # Batch computation
    self.max_workers = max(1, _env_int("CHANJO_MAX_WORKERS", 8))

    self.log_level = os.environ.get("CHANJO_LOG_LEVEL", "WARNING").upper()

  @property
  def is_configured(self) -> bool:
    """Check if the database connection is configured."""
    return bool(self.supabase_url and self.supabase_anon_key)

  def validate(self) -> None:
    """Raise error if the database connection is not configured."""
    if not self.supabase_url:
      raise ValueError("SUPABASE_URL environment variable not set")
    if not self.supabase_anon_key:
      raise ValueError("SUPABASE_ANON_KEY environment variable not set")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
  """Get the process-wide settings (singleton)."""
  global _settings
  if _settings is None:
    _settings = Settings()
  return _settings


def reset_settings() -> None:
  """Drop cached settings (useful for testing)."""
  global _settings
  _settings = None


def configure_logging(level: Optional[str] = None) -> None:
  """Route the chanjo loggers through a rich console handler."""
  level = (level or get_settings().log_level).upper()
  logger = logging.getLogger("chanjo")
  logger.setLevel(level)
  if not any(isinstance(h, RichHandler) for h in logger.handlers):
    logger.addHandler(RichHandler(show_path=False, rich_tracebacks=True))
