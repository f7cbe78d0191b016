from __future__ import annotations

"""Tuning parameters for lesson planning.

This module is the single place to tune:
- the bucket name for time on exercises without focus-area tags
- the performer-count duration policy
- lesson name defaults
"""

from typing import Optional, Tuple

# Time on exercises with no focus-area tags is attributed here.
OTHER_FOCUS_AREA: str = "Other"

# ---------------------------------------------------------------------------
# Performer-count duration policy
# ---------------------------------------------------------------------------

# (min_performers, max_performers or None for open-ended, multiplier)
# A coarse policy table, not a model: more performers means more rotations.
PERFORMER_COUNT_SCALE: Tuple[Tuple[int, Optional[int], float], ...] = (
    (1, 4, 0.75),
    (5, 8, 1.0),
    (9, 12, 1.25),
    (13, None, 1.5),
)

# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------

DEFAULT_SESSION_NAME: str = "Improv Session"
TEAM_PRACTICE_SUFFIX: str = "Practice"
TEMPLATE_SUFFIX: str = "Template"
# e.g. "Mar 07, 2026"
NAME_DATE_FORMAT: str = "%b %d, %Y"
