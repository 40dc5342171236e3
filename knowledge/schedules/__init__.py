"""
Bundled immunization schedules.

Each schedule is a YAML list of vaccine definitions living next to this
module, e.g. `kepi.yaml`.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml

from chanjo.models import VaccineDefinition

SCHEDULES_DIR = Path(__file__).parent
DEFAULT_SCHEDULE = "kepi"


def available_schedules() -> list[str]:
    """Names of the bundled schedules."""
    return sorted(p.stem for p in SCHEDULES_DIR.glob("*.yaml"))


@lru_cache(maxsize=None)
def _load_raw(name: str) -> tuple[dict, ...]:
    path = SCHEDULES_DIR / f"{name}.yaml"
    if not path.exists():
        raise ValueError(
            f"Unknown schedule '{name}'. Available: {', '.join(available_schedules())}"
        )
    with open(path, "r") as f:
        data = yaml.safe_load(f) or []
    return tuple(data)


def load_catalog(name: str = DEFAULT_SCHEDULE, active_only: bool = True) -> list[VaccineDefinition]:
    """
    Load a bundled schedule as vaccine definitions.

    The YAML is parsed once per process; every call returns fresh models,
    sorted by primary-dose age in months.
    """
    vaccines = [VaccineDefinition.model_validate(entry) for entry in _load_raw(name)]
    if active_only:
        vaccines = [v for v in vaccines if v.is_active]
    return sorted(vaccines, key=lambda v: v.recommended_age.months)
