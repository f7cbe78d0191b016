"""Practice sessions end to end: lifecycle, attendance, evaluations, notes."""

import gc
import threading

import pytest

from catalog import service as c_service
from errors import ConflictError, NotFoundError, ValidationError
from evaluation import service as e_service
from lessons import service as l_service
from practice import locks as p_locks
from practice import service as p_service

from conftest import NOW

LATER = "2026-03-07T19:30:00+00:00"


@pytest.fixture
def lesson(repo, coach_id, exercises):
    return l_service.create_lesson(
        repo=repo,
        coach_id=coach_id,
        name="Thursday Drop-in",
        exercises=[{"exercise_id": exercises[k]} for k in ("mirror", "one_word", "space_walk")],
        now_iso=NOW,
    )


@pytest.fixture
def occ(lesson):
    return [e["lesson_exercise_id"] for e in lesson["exercises"]]


@pytest.fixture
def session(repo, coach_id, lesson):
    return p_service.start_session(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], now_iso=NOW)


@pytest.fixture
def performers(repo, coach_id):
    return [
        c_service.create_performer(repo=repo, coach_id=coach_id, first_name=name, now_iso=NOW)
        for name in ("Amy", "Tina", "Rachel")
    ]


class TestLifecycle:
    def test_start(self, session, occ):
        assert session["state"] == "LIVE"
        assert session["current_exercise_id"] == occ[0]
        assert session["current_exercise_index"] == 0
        assert session["current_exercise_name"] == "Mirror"
        assert session["version"] == 1

    def test_starting_twice_gives_independent_sessions(self, repo, coach_id, lesson, session):
        second = p_service.start_session(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], now_iso=NOW)
        assert second["session_id"] != session["session_id"]
        listed = p_service.list_sessions(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"])
        assert len(listed) == 2

    def test_advance(self, repo, coach_id, session, occ):
        view = p_service.advance_to(
            repo=repo, coach_id=coach_id, session_id=session["session_id"], lesson_exercise_id=occ[2], now_iso=NOW
        )
        assert view["current_exercise_index"] == 2
        assert view["current_exercise_name"] == "Space Walk"
        assert view["version"] == 2

    def test_advance_to_foreign_occurrence(self, repo, coach_id, session):
        other = l_service.create_lesson(
            repo=repo, coach_id=coach_id, exercises=[{"exercise_id": "sys-yes-and"}], now_iso=NOW
        )
        with pytest.raises(ValidationError):
            p_service.advance_to(
                repo=repo,
                coach_id=coach_id,
                session_id=session["session_id"],
                lesson_exercise_id=other["exercises"][0]["lesson_exercise_id"],
                now_iso=NOW,
            )

    def test_end_once(self, repo, coach_id, session):
        ended = p_service.end_session(repo=repo, coach_id=coach_id, session_id=session["session_id"], now_iso=LATER)
        assert ended["state"] == "CLOSED"
        assert ended["end_time"] == LATER
        with pytest.raises(ValidationError) as ei:
            p_service.end_session(repo=repo, coach_id=coach_id, session_id=session["session_id"], now_iso=NOW)
        assert ei.value.code == "SESSION_ALREADY_CLOSED"
        stored = p_service.get_session(repo=repo, coach_id=coach_id, session_id=session["session_id"])
        assert stored["end_time"] == LATER

    def test_live_only_listing(self, repo, coach_id, lesson, session):
        p_service.end_session(repo=repo, coach_id=coach_id, session_id=session["session_id"], now_iso=LATER)
        p_service.start_session(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], now_iso=LATER)
        live = p_service.list_sessions(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], live_only=True)
        assert [s["state"] for s in live] == ["LIVE"]

    def test_unknown_session(self, repo, coach_id):
        with pytest.raises(NotFoundError):
            p_service.get_session(repo=repo, coach_id=coach_id, session_id="nope")

    def test_other_coach_cannot_drive_session(self, repo, other_coach_id, session, occ):
        with pytest.raises(ValidationError):
            p_service.advance_to(
                repo=repo, coach_id=other_coach_id, session_id=session["session_id"], lesson_exercise_id=occ[1]
            )


class TestConcurrency:
    def test_stale_expected_version_conflicts(self, repo, coach_id, session, occ):
        sid = session["session_id"]
        p_service.advance_to(repo=repo, coach_id=coach_id, session_id=sid, lesson_exercise_id=occ[1], expected_version=1)
        with pytest.raises(ConflictError) as ei:
            p_service.advance_to(
                repo=repo, coach_id=coach_id, session_id=sid, lesson_exercise_id=occ[2], expected_version=1
            )
        assert ei.value.code == "SESSION_VERSION_CONFLICT"
        stored = p_service.get_session(repo=repo, coach_id=coach_id, session_id=sid)
        assert stored["current_exercise_id"] == occ[1]

    def test_busy_session_lock_times_out(self, repo, coach_id, session, occ, monkeypatch):
        monkeypatch.setenv("IMPROV_COACH_SESSION_LOCK_TIMEOUT_S", "0.05")
        sid = session["session_id"]
        held = threading.Event()
        release = threading.Event()

        def holder():
            with p_locks.session_write_lock(sid, reason="test"):
                held.set()
                release.wait(5)

        t = threading.Thread(target=holder)
        t.start()
        try:
            assert held.wait(5)
            with pytest.raises(ConflictError) as ei:
                p_service.advance_to(repo=repo, coach_id=coach_id, session_id=sid, lesson_exercise_id=occ[1])
            assert ei.value.code == "SESSION_LOCK_TIMEOUT"
        finally:
            release.set()
            t.join(5)

    def test_lock_is_reentrant(self, session):
        sid = session["session_id"]
        with p_locks.session_write_lock(sid):
            with p_locks.session_write_lock(sid, timeout_s=0):
                pass

    def test_lock_registry_drops_idle_sessions(self, repo, coach_id, session):
        sid = session["session_id"]
        with p_locks.session_write_lock(sid):
            assert sid in p_locks._SESSION_LOCKS
        p_service.end_session(repo=repo, coach_id=coach_id, session_id=sid, now_iso=LATER)
        gc.collect()
        assert sid not in p_locks._SESSION_LOCKS


class TestAttendance:
    def test_record_is_idempotent(self, repo, coach_id, session, performers):
        sid = session["session_id"]
        first = p_service.record_attendance(
            repo=repo, coach_id=coach_id, session_id=sid, performer_id=performers[0], present=True
        )
        again = p_service.record_attendance(
            repo=repo, coach_id=coach_id, session_id=sid, performer_id=performers[0], present=True
        )
        assert first["attendee_ids"] == again["attendee_ids"] == [performers[0]]
        assert again["version"] == first["version"]

    def test_absent_removes(self, repo, coach_id, session, performers):
        sid = session["session_id"]
        p_service.record_attendance(repo=repo, coach_id=coach_id, session_id=sid, performer_id=performers[0], present=True)
        view = p_service.record_attendance(
            repo=repo, coach_id=coach_id, session_id=sid, performer_id=performers[0], present=False
        )
        assert view["attendee_ids"] == []

    def test_closed_session_still_takes_attendance(self, repo, coach_id, session, performers):
        sid = session["session_id"]
        p_service.end_session(repo=repo, coach_id=coach_id, session_id=sid, now_iso=LATER)
        view = p_service.record_attendance(
            repo=repo, coach_id=coach_id, session_id=sid, performer_id=performers[1], present=True
        )
        assert view["attendee_ids"] == [performers[1]]

    def test_replace_is_atomic(self, repo, coach_id, session, performers):
        sid = session["session_id"]
        p_service.replace_attendance(repo=repo, coach_id=coach_id, session_id=sid, performer_ids=performers[:2])
        with pytest.raises(NotFoundError):
            p_service.replace_attendance(
                repo=repo, coach_id=coach_id, session_id=sid, performer_ids=[performers[2], "ghost"]
            )
        names = sorted(a["first_name"] for a in p_service.get_attendees(repo=repo, coach_id=coach_id, session_id=sid))
        assert names == ["Amy", "Tina"]

    def test_other_coaches_performer_is_unknown(self, repo, coach_id, other_coach_id, session):
        stranger = c_service.create_performer(repo=repo, coach_id=other_coach_id, first_name="Zed", now_iso=NOW)
        with pytest.raises(NotFoundError):
            p_service.record_attendance(
                repo=repo, coach_id=coach_id, session_id=session["session_id"], performer_id=stranger, present=True
            )


class TestSceneEvaluations:
    def test_record_against_system_default(self, repo, coach_id, session, occ, performers):
        out = p_service.record_scene_evaluation(
            repo=repo,
            coach_id=coach_id,
            lesson_exercise_id=occ[0],
            session_id=session["session_id"],
            performer_ids=performers[:2],
            scores={"Listening": 4, "Agreement": 5},
            notes="Strong mirror",
            rubric_type="scene",
            now_iso=NOW,
        )
        assert out["template_source"] == "SYSTEM_DEFAULT"
        assert out["scores"] == {"Listening": 4, "Agreement": 5}
        listed = p_service.list_session_evaluations(repo=repo, coach_id=coach_id, session_id=session["session_id"])
        assert [e["evaluation_id"] for e in listed] == [out["evaluation_id"]]
        assert sorted(listed[0]["performer_ids"]) == sorted(performers[:2])

    def test_score_above_rubric_max(self, repo, coach_id, occ):
        with pytest.raises(ValidationError):
            p_service.record_scene_evaluation(
                repo=repo, coach_id=coach_id, lesson_exercise_id=occ[0], scores={"Listening": 9}, now_iso=NOW
            )

    def test_exercise_default_rubric_applies(self, repo, coach_id, exercises, occ):
        e_service.create_template(
            repo=repo,
            coach_id=coach_id,
            name="Mirror rubric",
            criteria=[{"name": "Sync", "max_score": 3}],
            exercise_id=exercises["mirror"],
            now_iso=NOW,
        )
        out = p_service.record_scene_evaluation(
            repo=repo, coach_id=coach_id, lesson_exercise_id=occ[0], scores={"Sync": 3}, now_iso=NOW
        )
        assert out["template_source"] == "EXERCISE_DEFAULT"
        assert out["template_name"] == "Mirror rubric"
        with pytest.raises(ValidationError):
            p_service.record_scene_evaluation(
                repo=repo, coach_id=coach_id, lesson_exercise_id=occ[0], scores={"Sync": 4}, now_iso=NOW
            )

    def test_session_of_another_lesson(self, repo, coach_id, session):
        other = l_service.create_lesson(
            repo=repo, coach_id=coach_id, exercises=[{"exercise_id": "sys-yes-and"}], now_iso=NOW
        )
        with pytest.raises(ValidationError) as ei:
            p_service.record_scene_evaluation(
                repo=repo,
                coach_id=coach_id,
                lesson_exercise_id=other["exercises"][0]["lesson_exercise_id"],
                session_id=session["session_id"],
                now_iso=NOW,
            )
        assert ei.value.code == "SESSION_LESSON_MISMATCH"

    def test_unknown_occurrence(self, repo, coach_id):
        with pytest.raises(NotFoundError):
            p_service.record_scene_evaluation(repo=repo, coach_id=coach_id, lesson_exercise_id="nope", now_iso=NOW)

    def test_list_by_occurrence(self, repo, coach_id, occ):
        for _ in range(2):
            p_service.record_scene_evaluation(repo=repo, coach_id=coach_id, lesson_exercise_id=occ[1], now_iso=NOW)
        listed = p_service.list_occurrence_evaluations(repo=repo, coach_id=coach_id, lesson_exercise_id=occ[1])
        assert len(listed) == 2
        assert all(e["session_id"] is None for e in listed)


class TestNotes:
    def test_default_type_and_session_filter(self, repo, coach_id, lesson, session):
        lid = lesson["lesson_id"]
        general = p_service.add_note(repo=repo, coach_id=coach_id, lesson_id=lid, content="Plan more warm-ups", now_iso=NOW)
        assert general["note_type"] == "overall"
        p_service.add_note(
            repo=repo,
            coach_id=coach_id,
            lesson_id=lid,
            content="Mirror ran long",
            session_id=session["session_id"],
            note_type="exercise",
            now_iso=LATER,
        )
        assert len(p_service.list_notes(repo=repo, coach_id=coach_id, lesson_id=lid)) == 2
        scoped = p_service.list_notes(repo=repo, coach_id=coach_id, lesson_id=lid, session_id=session["session_id"])
        assert [n["content"] for n in scoped] == ["Mirror ran long"]

    def test_empty_content_rejected(self, repo, coach_id, lesson):
        with pytest.raises(ValidationError):
            p_service.add_note(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], content="   ")

    def test_session_must_belong_to_lesson(self, repo, coach_id, session):
        other = l_service.create_lesson(repo=repo, coach_id=coach_id, now_iso=NOW)
        with pytest.raises(ValidationError):
            p_service.add_note(
                repo=repo,
                coach_id=coach_id,
                lesson_id=other["lesson_id"],
                content="wrong lesson",
                session_id=session["session_id"],
            )
