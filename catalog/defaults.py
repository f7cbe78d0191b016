from __future__ import annotations

"""System exercise library seeded at startup.

Entries are keyed by a stable exercise_id so seeding stays idempotent.
"""

from typing import Any, Dict, List

SYSTEM_FOCUS_AREAS: List[Dict[str, str]] = [
    {"name": "Listening", "description": "Hearing and using what a partner offers."},
    {"name": "Agreement", "description": "Accepting offers and building on them (\"yes, and\")."},
    {"name": "Physicality", "description": "Body, space work and environment."},
    {"name": "Character", "description": "Point of view, voice and status."},
    {"name": "Storytelling", "description": "Structure, stakes and narrative payoff."},
    {"name": "Energy", "description": "Warm-up, focus and group connection."},
]

SYSTEM_EXERCISES: List[Dict[str, Any]] = [
    {
        "exercise_id": "sys-zip-zap-zop",
        "name": "Zip Zap Zop",
        "description": "Circle warm-up passing energy with eye contact.",
        "minimum_duration_minutes": 5,
        "focus_areas": ["Energy", "Listening"],
    },
    {
        "exercise_id": "sys-yes-and",
        "name": "Yes, And",
        "description": "Pairs build a plan where every line accepts and extends the last.",
        "minimum_duration_minutes": 10,
        "focus_areas": ["Agreement", "Listening"],
    },
    {
        "exercise_id": "sys-object-work",
        "name": "Object Work",
        "description": "Silent scene establishing an environment through handled objects.",
        "minimum_duration_minutes": 10,
        "focus_areas": ["Physicality"],
    },
    {
        "exercise_id": "sys-status-swap",
        "name": "Status Swap",
        "description": "Two-person scene where the characters trade high and low status.",
        "minimum_duration_minutes": 15,
        "focus_areas": ["Character"],
    },
    {
        "exercise_id": "sys-story-spine",
        "name": "Story Spine",
        "description": "Group story told one sentence at a time using the story spine prompts.",
        "minimum_duration_minutes": 15,
        "focus_areas": ["Storytelling", "Agreement"],
    },
    {
        "exercise_id": "sys-freeze-tag",
        "name": "Freeze Tag",
        "description": "Performers freeze a scene and tag in with a new justification.",
        "minimum_duration_minutes": 20,
        "focus_areas": [],
    },
]
