"""Live practice sessions run against a lesson plan.

A session starts LIVE, walks through the lesson's exercises via a
current-exercise pointer, keeps an attendance roster, and collects
append-only notes and scene evaluations. Ending it is a one-way transition.

Public API (v1)
---------------
- start_session / get_session / list_sessions / advance_to / end_session
- record_attendance / replace_attendance / get_attendees
- record_scene_evaluation / list_session_evaluations / list_occurrence_evaluations
- add_note / list_notes

Concurrency
-----------
Writes to one session are serialized by a process-local lock
(practice.locks) and version-checked in SQLite (practice_sessions.version).
"""

from .service import (
    add_note,
    advance_to,
    end_session,
    get_attendees,
    get_session,
    list_notes,
    list_occurrence_evaluations,
    list_session_evaluations,
    list_sessions,
    record_attendance,
    record_scene_evaluation,
    replace_attendance,
    start_session,
)

__all__ = [
    "add_note",
    "advance_to",
    "end_session",
    "get_attendees",
    "get_session",
    "list_notes",
    "list_occurrence_evaluations",
    "list_session_evaluations",
    "list_sessions",
    "record_attendance",
    "record_scene_evaluation",
    "replace_attendance",
    "start_session",
]
