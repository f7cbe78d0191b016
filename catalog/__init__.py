"""Reference data read by the core: coaches, teams, performers, focus areas, exercises.

Teams/performers/focus-areas get plain inserts and lookups only; the core
never edits an Exercise, it only reads it.

Relationships are one-directional: an exercise owns its focus-area tags and a
performer owns its team ids. "Performers of a team" is a query, not a
second mutable back-pointer.
"""

from .types import Exercise, Performer, Team

__all__ = ["Exercise", "Performer", "Team"]
