from __future__ import annotations

"""Time-budget analytics over a sequenced lesson (pure).

Focus-area attribution is an even integer split of each occurrence's planned
duration across its exercise's tags. There is no per-tag weight; remainder
minutes of an uneven split are dropped, so bucket minutes can sum to less than
the lesson total.
"""

from typing import Dict, Iterable, List, Optional

from errors import BAD_INPUT, ValidationError

from . import config as l_config
from .types import LessonExercise, TimeBreakdown


def _tags(le: LessonExercise) -> tuple:
    ex = le.exercise
    if ex is None:
        return ()
    return tuple(t for t in ex.focus_areas if t)


def focus_area_breakdown(occurrences: Iterable[LessonExercise]) -> Dict[str, int]:
    """Return ``{focus_area: minutes}``; tagless time lands in the "Other" bucket."""
    out: Dict[str, int] = {}
    for le in occurrences:
        minutes = int(le.planned_duration_minutes or 0)
        if minutes <= 0:
            continue
        tags = _tags(le)
        if not tags:
            out[l_config.OTHER_FOCUS_AREA] = out.get(l_config.OTHER_FOCUS_AREA, 0) + minutes
            continue
        share = minutes // len(tags)
        for tag in tags:
            out[tag] = out.get(tag, 0) + share
    return out


def detailed_breakdown(occurrences: Iterable[LessonExercise]) -> List[TimeBreakdown]:
    """Breakdown rows with percentage of the lesson total, largest bucket first."""
    items = list(occurrences)
    total = sum(int(le.planned_duration_minutes or 0) for le in items)
    rows = [
        TimeBreakdown(
            focus_area=name,
            minutes=minutes,
            percentage=(minutes * 100.0 / total) if total > 0 else 0.0,
        )
        for name, minutes in focus_area_breakdown(items).items()
    ]
    rows.sort(key=lambda r: (-r.minutes, r.focus_area))
    return rows


def scale_for_performer_count(base_duration: int, performer_count: int) -> int:
    """Scale a base estimate by group size using the policy table in lessons.config."""
    if isinstance(performer_count, bool) or int(performer_count) < 1:
        raise ValidationError(
            BAD_INPUT,
            "performer_count must be at least 1",
            {"field": "performer_count", "value": performer_count},
        )
    n = int(performer_count)
    for low, high, factor in l_config.PERFORMER_COUNT_SCALE:
        if n >= low and (high is None or n <= high):
            return int(int(base_duration) * factor)
    return int(base_duration)


def format_duration(minutes: Optional[int]) -> str:
    m = int(minutes or 0)
    if m < 60:
        return f"{m} min"
    hours, rest = divmod(m, 60)
    text = f"{hours} hour" if hours == 1 else f"{hours} hours"
    if rest:
        text += f" {rest} min"
    return text
