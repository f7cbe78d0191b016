"""Lesson planning against a real SQLite database."""

import pytest

from catalog import service as c_service
from errors import ConflictError, NotFoundError, ValidationError
from lessons import service as l_service
from practice import service as p_service

from conftest import NOW


def _items(exercises, *keys, **durations):
    return [{"exercise_id": exercises[k], "planned_duration_minutes": durations.get(k)} for k in keys]


@pytest.fixture
def lesson(repo, coach_id, exercises):
    return l_service.create_lesson(
        repo=repo,
        coach_id=coach_id,
        name="Tuesday Jam",
        exercises=_items(exercises, "mirror", "one_word", "space_walk", mirror=10, one_word=15, space_walk=20),
        now_iso=NOW,
    )


def _occ_ids(view):
    return [e["lesson_exercise_id"] for e in view["exercises"]]


class TestCreateLesson:
    def test_sequence_and_total(self, lesson):
        assert [e["order_index"] for e in lesson["exercises"]] == [1, 2, 3]
        assert [e["exercise_name"] for e in lesson["exercises"]] == ["Mirror", "One Word Story", "Space Walk"]
        assert lesson["total_duration_minutes"] == 45
        assert lesson["formatted_total_duration"] == "45 min"

    def test_breakdown_is_part_of_the_view(self, lesson):
        assert lesson["focus_area_minutes"] == {"Listening": 25, "Physicality": 20}
        rows = {r["focus_area"]: r["percentage"] for r in lesson["focus_area_breakdown"]}
        assert rows == {"Listening": 55.6, "Physicality": 44.4}

    def test_durations_default_to_exercise_minimum(self, repo, coach_id, exercises):
        view = l_service.create_lesson(
            repo=repo, coach_id=coach_id, exercises=[{"exercise_id": exercises["space_walk"]}], now_iso=NOW
        )
        assert view["total_duration_minutes"] == 20

    def test_generated_name_for_team_lesson(self, repo, coach_id):
        team_id = c_service.create_team(repo=repo, coach_id=coach_id, name="Harold Team", now_iso=NOW)
        view = l_service.create_lesson(
            repo=repo, coach_id=coach_id, team_id=team_id, scheduled_date="2026-03-10", now_iso=NOW
        )
        assert view["name"] == "Harold Team Practice | Mar 10, 2026"
        assert view["team_name"] == "Harold Team"

    def test_generated_name_without_team(self, repo, coach_id):
        view = l_service.create_lesson(
            repo=repo, coach_id=coach_id, workshop_type="Long Form", scheduled_date="2026-03-10", now_iso=NOW
        )
        assert view["name"] == "Long Form - Mar 10, 2026"
        plain = l_service.create_lesson(repo=repo, coach_id=coach_id, now_iso=NOW)
        assert plain["name"] == "Improv Session"

    def test_every_occurrence_resolves_a_rubric(self, lesson):
        assert {e["evaluation_template_source"] for e in lesson["exercises"]} == {"SYSTEM_DEFAULT"}

    def test_unknown_exercise(self, repo, coach_id):
        with pytest.raises(NotFoundError):
            l_service.create_lesson(repo=repo, coach_id=coach_id, exercises=[{"exercise_id": "nope"}], now_iso=NOW)

    def test_other_coaches_private_exercise_is_invisible(self, repo, coach_id, other_coach_id, exercises):
        with pytest.raises(NotFoundError):
            l_service.create_lesson(
                repo=repo, coach_id=other_coach_id, exercises=[{"exercise_id": exercises["mirror"]}], now_iso=NOW
            )

    def test_system_exercises_are_usable_by_anyone(self, repo, other_coach_id):
        view = l_service.create_lesson(
            repo=repo, coach_id=other_coach_id, exercises=[{"exercise_id": "sys-yes-and"}], now_iso=NOW
        )
        assert view["total_duration_minutes"] == 10

    def test_unknown_coach(self, repo):
        with pytest.raises(NotFoundError):
            l_service.create_lesson(repo=repo, coach_id="ghost", now_iso=NOW)

    def test_bad_date(self, repo, coach_id):
        with pytest.raises(ValidationError):
            l_service.create_lesson(repo=repo, coach_id=coach_id, scheduled_date="next tuesday", now_iso=NOW)


class TestSequenceEdits:
    def test_add_appends_at_end(self, repo, coach_id, lesson):
        out = l_service.add_exercise(
            repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], exercise_id="sys-object-work", now_iso=NOW
        )
        assert out["lesson_exercise"]["order_index"] == 4
        assert out["lesson"]["total_duration_minutes"] == 55

    def test_remove_middle_reindexes(self, repo, coach_id, lesson):
        middle = _occ_ids(lesson)[1]
        view = l_service.remove_exercise(
            repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], lesson_exercise_id=middle, now_iso=NOW
        )
        assert [e["order_index"] for e in view["exercises"]] == [1, 2]
        assert view["total_duration_minutes"] == 30
        assert middle not in _occ_ids(view)

    def test_remove_unknown_occurrence(self, repo, coach_id, lesson):
        with pytest.raises(NotFoundError):
            l_service.remove_exercise(
                repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], lesson_exercise_id="nope", now_iso=NOW
            )

    def test_remove_occurrence_of_another_lesson(self, repo, coach_id, lesson):
        other = l_service.create_lesson(
            repo=repo, coach_id=coach_id, exercises=[{"exercise_id": "sys-yes-and"}], now_iso=NOW
        )
        with pytest.raises(ValidationError):
            l_service.remove_exercise(
                repo=repo,
                coach_id=coach_id,
                lesson_id=lesson["lesson_id"],
                lesson_exercise_id=_occ_ids(other)[0],
                now_iso=NOW,
            )

    def test_reorder(self, repo, coach_id, lesson):
        a, b, c = _occ_ids(lesson)
        view = l_service.reorder_exercises(
            repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], lesson_exercise_ids=[c, a, b], now_iso=NOW
        )
        assert _occ_ids(view) == [c, a, b]
        assert [e["order_index"] for e in view["exercises"]] == [1, 2, 3]
        assert view["total_duration_minutes"] == 45

    def test_reorder_rejects_partial_list(self, repo, coach_id, lesson):
        a, b, _ = _occ_ids(lesson)
        with pytest.raises(ValidationError):
            l_service.reorder_exercises(
                repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], lesson_exercise_ids=[a, b], now_iso=NOW
            )
        again = l_service.get_lesson(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"])
        assert _occ_ids(again) == _occ_ids(lesson)

    def test_update_replaces_sequence(self, repo, coach_id, lesson, exercises):
        view = l_service.update_lesson(
            repo=repo,
            coach_id=coach_id,
            lesson_id=lesson["lesson_id"],
            name="Renamed",
            exercises=_items(exercises, "space_walk", "mirror", space_walk=5, mirror=5),
            now_iso=NOW,
        )
        assert view["name"] == "Renamed"
        assert [e["exercise_name"] for e in view["exercises"]] == ["Space Walk", "Mirror"]
        assert view["total_duration_minutes"] == 10

    def test_update_without_exercises_keeps_sequence(self, repo, coach_id, lesson):
        view = l_service.update_lesson(
            repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], name="Renamed", now_iso=NOW
        )
        assert _occ_ids(view) == _occ_ids(lesson)

    def test_integrity_holds_after_edits(self, repo, coach_id, lesson):
        a, b, c = _occ_ids(lesson)
        lid = lesson["lesson_id"]
        l_service.add_exercise(repo=repo, coach_id=coach_id, lesson_id=lid, exercise_id="sys-yes-and", now_iso=NOW)
        l_service.remove_exercise(repo=repo, coach_id=coach_id, lesson_id=lid, lesson_exercise_id=a, now_iso=NOW)
        current = _occ_ids(l_service.get_lesson(repo=repo, coach_id=coach_id, lesson_id=lid))
        l_service.reorder_exercises(
            repo=repo, coach_id=coach_id, lesson_id=lid, lesson_exercise_ids=list(reversed(current)), now_iso=NOW
        )
        assert repo.find_integrity_problems() == []


class TestSessionPointers:
    def test_reorder_moves_live_pointer(self, repo, coach_id, lesson):
        a, b, c = _occ_ids(lesson)
        session = p_service.start_session(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], now_iso=NOW)
        p_service.advance_to(
            repo=repo, coach_id=coach_id, session_id=session["session_id"], lesson_exercise_id=b, now_iso=NOW
        )
        l_service.reorder_exercises(
            repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], lesson_exercise_ids=[b, c, a], now_iso=NOW
        )
        after = p_service.get_session(repo=repo, coach_id=coach_id, session_id=session["session_id"])
        assert after["current_exercise_id"] == b
        assert after["current_exercise_index"] == 0

    def test_removing_current_exercise_clears_pointer_and_evaluations(self, repo, coach_id, lesson):
        a, b, c = _occ_ids(lesson)
        session = p_service.start_session(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], now_iso=NOW)
        p_service.record_scene_evaluation(
            repo=repo, coach_id=coach_id, lesson_exercise_id=a, session_id=session["session_id"], now_iso=NOW
        )
        l_service.remove_exercise(
            repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], lesson_exercise_id=a, now_iso=NOW
        )
        after = p_service.get_session(repo=repo, coach_id=coach_id, session_id=session["session_id"])
        assert after["current_exercise_id"] is None
        assert after["current_exercise_index"] == 0
        assert after["version"] == session["version"] + 1
        assert p_service.list_session_evaluations(repo=repo, coach_id=coach_id, session_id=session["session_id"]) == []


class TestOwnership:
    def test_missing_lesson(self, repo, coach_id):
        with pytest.raises(NotFoundError):
            l_service.get_lesson(repo=repo, coach_id=coach_id, lesson_id="nope")

    def test_view_of_vanished_lesson(self, repo):
        with repo.transaction() as cur:
            with pytest.raises(NotFoundError) as ei:
                l_service._view_by_id(cur, "nope")
        assert ei.value.code == "LESSON_NOT_FOUND"

    def test_other_coach_is_denied(self, repo, other_coach_id, lesson):
        with pytest.raises(ValidationError) as ei:
            l_service.get_lesson(repo=repo, coach_id=other_coach_id, lesson_id=lesson["lesson_id"])
        assert ei.value.code == "LESSON_ACCESS_DENIED"
        assert not isinstance(ei.value, ConflictError)

    def test_other_coach_cannot_delete(self, repo, coach_id, other_coach_id, lesson):
        with pytest.raises(ValidationError):
            l_service.delete_lesson(repo=repo, coach_id=other_coach_id, lesson_id=lesson["lesson_id"])
        assert l_service.get_lesson(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"])


class TestListAndDelete:
    def test_list_filters_templates_and_upcoming(self, repo, coach_id, lesson):
        l_service.save_as_template(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], now_iso=NOW)
        l_service.create_lesson(repo=repo, coach_id=coach_id, name="Soon", scheduled_date="2026-03-10", now_iso=NOW)
        l_service.create_lesson(repo=repo, coach_id=coach_id, name="Past", scheduled_date="2026-01-10", now_iso=NOW)

        everything = l_service.list_lessons(repo=repo, coach_id=coach_id)
        assert len(everything) == 4
        templates = l_service.list_lessons(repo=repo, coach_id=coach_id, templates=True)
        assert [t["name"] for t in templates] == ["Tuesday Jam Template"]
        upcoming = l_service.list_lessons(repo=repo, coach_id=coach_id, upcoming=True, now_iso=NOW)
        assert [u["name"] for u in upcoming] == ["Soon"]

    def test_delete_cascades(self, repo, coach_id, lesson):
        lid = lesson["lesson_id"]
        first = _occ_ids(lesson)[0]
        performer = c_service.create_performer(repo=repo, coach_id=coach_id, first_name="Tina", now_iso=NOW)
        session = p_service.start_session(repo=repo, coach_id=coach_id, lesson_id=lid, now_iso=NOW)
        p_service.record_attendance(
            repo=repo, coach_id=coach_id, session_id=session["session_id"], performer_id=performer, present=True, now_iso=NOW
        )
        p_service.record_scene_evaluation(
            repo=repo,
            coach_id=coach_id,
            lesson_exercise_id=first,
            session_id=session["session_id"],
            performer_ids=[performer],
            scores={"Listening": 4},
            now_iso=NOW,
        )
        p_service.add_note(repo=repo, coach_id=coach_id, lesson_id=lid, content="Great energy", now_iso=NOW)

        out = l_service.delete_lesson(repo=repo, coach_id=coach_id, lesson_id=lid)
        assert out["ok"] is True
        assert out["deleted"]["lesson_exercises"] == 3
        assert out["deleted"]["practice_sessions"] == 1
        assert out["deleted"]["scene_evaluations"] == 1
        assert out["deleted"]["practice_notes"] == 1
        with pytest.raises(NotFoundError):
            l_service.get_lesson(repo=repo, coach_id=coach_id, lesson_id=lid)
        with pytest.raises(NotFoundError):
            p_service.get_session(repo=repo, coach_id=coach_id, session_id=session["session_id"])
        assert repo.find_integrity_problems() == []


class TestTemplates:
    def test_save_as_template_copies_sequence(self, repo, coach_id, lesson):
        tpl = l_service.save_as_template(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], now_iso=NOW)
        assert tpl["is_template"] is True
        assert tpl["name"] == "Tuesday Jam Template"
        assert tpl["scheduled_date"] is None and tpl["team_id"] is None
        assert [e["exercise_id"] for e in tpl["exercises"]] == [e["exercise_id"] for e in lesson["exercises"]]
        assert set(_occ_ids(tpl)).isdisjoint(_occ_ids(lesson))
        assert tpl["total_duration_minutes"] == 45

    def test_create_from_template(self, repo, coach_id, lesson):
        tpl = l_service.save_as_template(
            repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], name="Basics", now_iso=NOW
        )
        team_id = c_service.create_team(repo=repo, coach_id=coach_id, name="Maude", now_iso=NOW)
        view = l_service.create_from_template(
            repo=repo,
            coach_id=coach_id,
            template_id=tpl["lesson_id"],
            scheduled_date="2026-03-14",
            team_id=team_id,
            now_iso=NOW,
        )
        assert view["is_template"] is False
        assert view["name"] == "Maude Practice | Mar 14, 2026"
        assert [e["order_index"] for e in view["exercises"]] == [1, 2, 3]
        assert view["total_duration_minutes"] == 45

    def test_regular_lesson_is_not_a_template(self, repo, coach_id, lesson):
        with pytest.raises(ValidationError) as ei:
            l_service.create_from_template(repo=repo, coach_id=coach_id, template_id=lesson["lesson_id"], now_iso=NOW)
        assert ei.value.code == "LESSON_NOT_TEMPLATE"


class TestTimeBudget:
    def test_focus_area_breakdown(self, repo, coach_id, lesson):
        out = l_service.get_focus_area_breakdown(repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"])
        assert out["total_duration_minutes"] == 45
        assert [(r["focus_area"], r["formatted_percentage"]) for r in out["rows"]] == [
            ("Listening", "55.6%"),
            ("Physicality", "44.4%"),
        ]

    def test_duration_estimate(self, repo, coach_id, lesson):
        out = l_service.estimate_duration_for_performers(
            repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], performer_count=10
        )
        assert out["base_duration_minutes"] == 45
        assert out["estimated_duration_minutes"] == 56
        assert out["formatted_duration"] == "56 min"

    def test_duration_estimate_rejects_zero(self, repo, coach_id, lesson):
        with pytest.raises(ValidationError):
            l_service.estimate_duration_for_performers(
                repo=repo, coach_id=coach_id, lesson_id=lesson["lesson_id"], performer_count=0
            )
