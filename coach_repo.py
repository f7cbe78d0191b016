# coach_repo.py
# Developer note:
# - SQLite DB is the single source of truth for lessons, sessions and evaluations.
# - All ids are canonical strings (uuid4).
# - Subsystem repo modules (catalog/lessons/evaluation/practice .repo) are pure
#   cursor-level I/O; this class owns the connection and transaction boundaries.
"""
CoachRepo: persisted-data SSOT (SQLite)

Usage (CLI):
  python coach_repo.py init --db <db_path>
  python coach_repo.py seed --db <db_path>
  python coach_repo.py validate --db <db_path>

Python:
  from coach_repo import CoachRepo
  with CoachRepo("<db_path>") as repo:
      repo.init_db()
      with repo.transaction() as cur:
          ...
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import clock

SCHEMA_VERSION = "1"

logger = logging.getLogger(__name__)


class CoachRepo:
    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON;")
        self._conn.execute("PRAGMA journal_mode = WAL;")
        # Nested transaction support (SAVEPOINT) for callers that compose repo methods.
        # (SQLite raises if BEGIN is issued while a transaction is already active.)
        self._savepoint_seq = 0

    def close(self) -> None:
        try:
            self._conn.close()
        except sqlite3.Error:
            logger.warning("COACH_REPO_CLOSE_FAILED db=%s", self.db_path, exc_info=True)

    @contextlib.contextmanager
    def transaction(self):
        """
        Atomic transaction helper.

        Supports nesting via SAVEPOINT:
        - outermost: BEGIN ... COMMIT/ROLLBACK
        - nested: SAVEPOINT ... RELEASE (or ROLLBACK TO + RELEASE on error)
        """
        cur = self._conn.cursor()
        nested = bool(getattr(self._conn, "in_transaction", False))
        sp_name = None
        try:
            if nested:
                self._savepoint_seq += 1
                sp_name = f"sp_{self._savepoint_seq}"
                cur.execute(f"SAVEPOINT {sp_name};")
            else:
                self._conn.execute("BEGIN;")

            yield cur

            if nested and sp_name:
                cur.execute(f"RELEASE SAVEPOINT {sp_name};")
            else:
                self._conn.commit()
        except Exception:
            if nested and sp_name:
                # Roll back to the savepoint only; the outer transaction decides for itself.
                try:
                    cur.execute(f"ROLLBACK TO SAVEPOINT {sp_name};")
                finally:
                    cur.execute(f"RELEASE SAVEPOINT {sp_name};")
            else:
                self._conn.rollback()
            raise
        finally:
            cur.close()

    # ------------------------
    # Schema
    # ------------------------

    def _ensure_table_columns(self, cur: sqlite3.Cursor, table: str, columns: Mapping[str, str]) -> None:
        """SQLite has no ADD COLUMN IF NOT EXISTS; check PRAGMA table_info first."""
        rows = cur.execute(f"PRAGMA table_info({table});").fetchall()
        existing = {r["name"] for r in rows}
        for col, ddl in columns.items():
            if col in existing:
                continue
            cur.execute(f"ALTER TABLE {table} ADD COLUMN {col} {ddl};")

    def init_db(self) -> None:
        """Apply SQLite schema (DDL + migrations) via db_schema."""
        from db_schema import apply_schema

        with self.transaction() as cur:
            applied = apply_schema(
                cur,
                now=clock.now_utc_iso(),
                schema_version=SCHEMA_VERSION,
                ensure_columns=self._ensure_table_columns,
            )
        logger.info("DB_INIT db=%s schema_version=%s modules=%s", self.db_path, SCHEMA_VERSION, ",".join(applied))

    def seed_defaults(self, *, now_iso: Optional[str] = None) -> None:
        """Seed the system default rubric and the system exercise library (idempotent)."""
        from catalog.service import ensure_system_exercises
        from evaluation.service import ensure_system_default_template

        ensure_system_default_template(repo=self, now_iso=now_iso)
        ensure_system_exercises(repo=self, now_iso=now_iso)

    # ------------------------
    # Integrity
    # ------------------------

    def find_integrity_problems(self) -> List[str]:
        """Return human-readable invariant violations (empty when the DB is consistent)."""
        problems: List[str] = []

        row = self._conn.execute("SELECT value FROM meta WHERE key='schema_version';").fetchone()
        if not row:
            return ["DB meta.schema_version missing (run init_db)"]
        if row["value"] != SCHEMA_VERSION:
            problems.append(f"DB schema_version {row['value']} != expected {SCHEMA_VERSION}")

        # order_index must be exactly 1..N per lesson
        indices: Dict[str, List[int]] = {}
        for r in self._conn.execute("SELECT lesson_id, order_index FROM lesson_exercises;").fetchall():
            indices.setdefault(str(r["lesson_id"]), []).append(int(r["order_index"]))
        for lesson_id, idx in indices.items():
            if sorted(idx) != list(range(1, len(idx) + 1)):
                problems.append(f"lesson {lesson_id} has non-contiguous order indices {sorted(idx)}")

        # cached total duration must equal the sum of planned durations
        bad_totals = self._conn.execute(
            """
            SELECT l.lesson_id, l.total_duration_minutes AS cached,
                   COALESCE(SUM(le.planned_duration_minutes), 0) AS actual
            FROM lessons l
            LEFT JOIN lesson_exercises le ON le.lesson_id = l.lesson_id
            GROUP BY l.lesson_id
            HAVING cached != actual;
            """
        ).fetchall()
        for r in bad_totals:
            problems.append(f"lesson {r['lesson_id']} total {r['cached']} != sum {r['actual']}")

        n_default = self._conn.execute(
            "SELECT COUNT(*) AS n FROM evaluation_templates WHERE is_default = 1;"
        ).fetchone()["n"]
        if int(n_default) != 1:
            problems.append(f"expected exactly one system default rubric, found {n_default}")

        # invariant: a session pointer never leaves its own lesson
        bad_pointers = self._conn.execute(
            """
            SELECT s.session_id
            FROM practice_sessions s
            JOIN lesson_exercises le ON le.lesson_exercise_id = s.current_exercise_id
            WHERE le.lesson_id != s.lesson_id;
            """
        ).fetchall()
        for r in bad_pointers:
            problems.append(f"session {r['session_id']} points outside its lesson")

        return problems

    def validate_integrity(self) -> None:
        """Fail fast on invariant violations. Run after imports or manual DB edits."""
        problems = self.find_integrity_problems()
        if problems:
            raise ValueError("; ".join(problems))

    # ------------------------
    # Convenience
    # ------------------------

    def __enter__(self) -> "CoachRepo":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# ----------------------------
# CLI
# ----------------------------

def _cmd_init(args) -> None:
    with CoachRepo(args.db) as repo:
        repo.init_db()
    print(f"OK: initialized {args.db}")


def _cmd_seed(args) -> None:
    with CoachRepo(args.db) as repo:
        repo.init_db()
        repo.seed_defaults()
    print(f"OK: seeded defaults into {args.db}")


def _cmd_validate(args) -> None:
    with CoachRepo(args.db) as repo:
        repo.validate_integrity()
    print(f"OK: validation passed for {args.db}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    p = argparse.ArgumentParser(description="CoachRepo (SQLite single source of truth)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="initialize DB schema")
    p_init.add_argument("--db", required=True, help="path to sqlite db file")
    p_init.set_defaults(func=_cmd_init)

    p_seed = sub.add_parser("seed", help="seed the default rubric and system exercises")
    p_seed.add_argument("--db", required=True, help="path to sqlite db file")
    p_seed.set_defaults(func=_cmd_seed)

    p_val = sub.add_parser("validate", help="validate DB integrity")
    p_val.add_argument("--db", required=True, help="path to sqlite db file")
    p_val.set_defaults(func=_cmd_validate)

    args = p.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
