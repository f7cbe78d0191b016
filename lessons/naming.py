from __future__ import annotations

"""Display names for lessons that were created without one."""

from typing import Optional

import clock

from . import config as l_config


def _date_label(scheduled_date: Optional[str]) -> Optional[str]:
    dt = clock.parse_datetime_iso(scheduled_date) if scheduled_date else None
    if dt is None:
        return None
    return dt.strftime(l_config.NAME_DATE_FORMAT)


def generate_name(
    *,
    team_name: Optional[str] = None,
    workshop_type: Optional[str] = None,
    scheduled_date: Optional[str] = None,
) -> str:
    """Team lessons: "<Team> Practice | Mar 07, 2026"; others: "<workshop> - Mar 07, 2026"."""
    label = _date_label(scheduled_date)
    if team_name:
        name = f"{team_name} {l_config.TEAM_PRACTICE_SUFFIX}"
        return f"{name} | {label}" if label else name
    base = (workshop_type or "").strip() or l_config.DEFAULT_SESSION_NAME
    return f"{base} - {label}" if label else base


def template_name(lesson_name: str) -> str:
    return f"{lesson_name} {l_config.TEMPLATE_SUFFIX}"
