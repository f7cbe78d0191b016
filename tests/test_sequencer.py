"""Exercise sequencing: dense 1..N indices and duration conservation."""

import pytest

from errors import NotFoundError, ValidationError
from lessons import sequencer
from lessons.types import ExerciseRequest

from helpers import exercise, ids, indices, occurrence


def _three():
    return [
        occurrence("a", 1, 10),
        occurrence("b", 2, 15),
        occurrence("c", 3, 20),
    ]


class TestCreateSequence:
    def test_indices_follow_request_order(self):
        reqs = [ExerciseRequest(exercise(f"e{i}"), planned_duration_minutes=5) for i in range(4)]
        seq, total = sequencer.create_sequence(reqs, lesson_id="L1")
        assert indices(seq) == [1, 2, 3, 4]
        assert [le.exercise_id for le in seq] == ["e0", "e1", "e2", "e3"]
        assert total == 20

    def test_missing_duration_defaults_to_exercise_minimum(self):
        reqs = [
            ExerciseRequest(exercise("warmup", minutes=12)),
            ExerciseRequest(exercise("scene", minutes=30), planned_duration_minutes=25),
        ]
        seq, total = sequencer.create_sequence(reqs, lesson_id="L1")
        assert [le.planned_duration_minutes for le in seq] == [12, 25]
        assert total == 37

    def test_missing_duration_without_minimum_counts_as_zero(self):
        seq, total = sequencer.create_sequence([ExerciseRequest(exercise("free"))], lesson_id="L1")
        assert seq[0].planned_duration_minutes is None
        assert total == 0

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            sequencer.create_sequence([ExerciseRequest(exercise("x"), planned_duration_minutes=-5)], lesson_id="L1")

    def test_empty_request_list(self):
        assert sequencer.create_sequence([], lesson_id="L1") == ([], 0)


class TestAppend:
    def test_appends_after_max_index(self):
        seq, created, total = sequencer.append_occurrence(
            _three(),
            exercise("new", minutes=5, is_public=True),
            lesson_id="L1",
            coach_id="coach-1",
        )
        assert created.order_index == 4
        assert indices(seq) == [1, 2, 3, 4]
        assert total == 50

    def test_append_to_empty_lesson_starts_at_one(self):
        seq, created, total = sequencer.append_occurrence(
            [], exercise("new", is_system=True), lesson_id="L1", coach_id="c", planned_duration_minutes=8
        )
        assert created.order_index == 1
        assert total == 8

    def test_private_exercise_of_other_coach_is_not_found(self):
        private = exercise("secret", created_by="coach-2")
        with pytest.raises(NotFoundError) as ei:
            sequencer.append_occurrence(_three(), private, lesson_id="L1", coach_id="coach-1")
        assert ei.value.details == {"kind": "exercise", "id": "secret"}

    def test_own_private_exercise_is_accessible(self):
        mine = exercise("mine", created_by="coach-1")
        _, created, _ = sequencer.append_occurrence([], mine, lesson_id="L1", coach_id="coach-1")
        assert created.exercise_id == "mine"


class TestRemove:
    def test_removing_middle_closes_the_gap(self):
        seq, removed, total = sequencer.remove_occurrence(_three(), "b", lesson_id="L1")
        assert removed.lesson_exercise_id == "b"
        assert ids(seq) == ["a", "c"]
        assert indices(seq) == [1, 2]
        assert total == 30

    def test_unknown_occurrence_is_validation_error(self):
        with pytest.raises(ValidationError):
            sequencer.remove_occurrence(_three(), "zzz", lesson_id="L1")

    def test_remove_last_leaves_empty_sequence(self):
        seq, _, total = sequencer.remove_occurrence([occurrence("a", 1, 10)], "a", lesson_id="L1")
        assert seq == [] and total == 0


class TestReorder:
    def test_permutation_assigns_positions(self):
        seq, total = sequencer.reorder_occurrences(_three(), ["c", "a", "b"])
        assert ids(seq) == ["c", "a", "b"]
        assert indices(seq) == [1, 2, 3]
        assert total == 45

    @pytest.mark.parametrize(
        "ordered_ids",
        [["a", "b"], ["a", "b", "c", "d"], ["a", "b", "x"], ["a", "a", "b"]],
    )
    def test_rejects_non_permutations(self, ordered_ids):
        with pytest.raises(ValidationError):
            sequencer.reorder_occurrences(_three(), ordered_ids)


class TestInvariants:
    def test_density_and_conservation_after_mixed_edits(self):
        seq = _three()
        seq, _, _ = sequencer.append_occurrence(seq, exercise("d", is_public=True), lesson_id="L1", coach_id="c", planned_duration_minutes=7)
        seq, _, _ = sequencer.remove_occurrence(seq, "a", lesson_id="L1")
        seq, total = sequencer.reorder_occurrences(seq, list(reversed(ids(seq))))
        seq, _, total = sequencer.append_occurrence(seq, exercise("e", is_public=True), lesson_id="L1", coach_id="c")
        assert sorted(indices(seq)) == list(range(1, len(seq) + 1))
        assert total == sum(le.planned_duration_minutes or 0 for le in seq)

    def test_position_of_is_zero_based(self):
        seq = _three()
        assert sequencer.position_of(seq, "a") == 0
        assert sequencer.position_of(seq, "c") == 2
        assert sequencer.position_of(seq, "nope") is None
        assert sequencer.position_of(seq, None) is None
