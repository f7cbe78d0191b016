from __future__ import annotations

"""The system default rubric (fallback of last resort).

Exactly one template flagged ``is_default`` must exist; it is seeded at startup
(CoachRepo.seed_defaults / app startup) under a stable id.
"""

from typing import Any, Dict, List

SYSTEM_DEFAULT_TEMPLATE_ID = "sys-default-rubric"
SYSTEM_DEFAULT_TEMPLATE_NAME = "General Scene Work"

SYSTEM_DEFAULT_CRITERIA: List[Dict[str, Any]] = [
    {"name": "Listening", "description": "Heard and used partner offers.", "max_score": 5, "focus_area": "Listening"},
    {"name": "Agreement", "description": "Accepted and built on offers.", "max_score": 5, "focus_area": "Agreement"},
    {"name": "Commitment", "description": "Full commitment to choices.", "max_score": 5, "focus_area": None},
    {"name": "Character", "description": "Clear point of view and status.", "max_score": 5, "focus_area": "Character"},
    {"name": "Storytelling", "description": "Scene had a base, stakes and a turn.", "max_score": 5, "focus_area": "Storytelling"},
]
