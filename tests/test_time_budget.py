"""Focus-area breakdown, performer-count scaling and duration formatting."""

import pytest

from errors import ValidationError
from lessons import time_budget

from helpers import exercise, occurrence


def _scenario():
    return [
        occurrence("a", 1, 10, exercise("mirror", "Listening")),
        occurrence("b", 2, 15, exercise("one-word", "Listening")),
        occurrence("c", 3, 20, exercise("space-walk", "Physicality")),
    ]


class TestFocusAreaBreakdown:
    def test_example_lesson(self):
        assert time_budget.focus_area_breakdown(_scenario()) == {"Listening": 25, "Physicality": 20}

    def test_even_integer_split_across_tags(self):
        seq = [occurrence("a", 1, 15, exercise("x", "Listening", "Agreement"))]
        # 15 // 2 == 7 each; the remainder minute is dropped
        assert time_budget.focus_area_breakdown(seq) == {"Listening": 7, "Agreement": 7}

    def test_tagless_time_goes_to_other(self):
        seq = [occurrence("a", 1, 12, exercise("freeform")), occurrence("b", 2, 3, exercise("y"))]
        assert time_budget.focus_area_breakdown(seq) == {"Other": 15}

    def test_zero_and_missing_durations_are_skipped(self):
        seq = [occurrence("a", 1, 0, exercise("x", "Listening")), occurrence("b", 2, None, exercise("y", "Energy"))]
        assert time_budget.focus_area_breakdown(seq) == {}


class TestDetailedBreakdown:
    def test_example_percentages(self):
        rows = {r.focus_area: r for r in time_budget.detailed_breakdown(_scenario())}
        assert rows["Listening"].minutes == 25
        assert rows["Listening"].formatted_percentage == "55.6%"
        assert rows["Physicality"].formatted_percentage == "44.4%"

    def test_rows_sorted_by_minutes_desc(self):
        names = [r.focus_area for r in time_budget.detailed_breakdown(_scenario())]
        assert names == ["Listening", "Physicality"]

    def test_percentages_sum_to_hundred(self):
        seq = [
            occurrence("a", 1, 7, exercise("x", "Listening")),
            occurrence("b", 2, 11, exercise("y", "Energy")),
            occurrence("c", 3, 13),
        ]
        rows = time_budget.detailed_breakdown(seq)
        assert sum(round(r.percentage, 1) for r in rows) == pytest.approx(100.0, abs=0.1 * len(rows))

    def test_zero_total_gives_empty_rows(self):
        assert time_budget.detailed_breakdown([occurrence("a", 1, 0)]) == []


class TestScaleForPerformerCount:
    @pytest.mark.parametrize(
        "performers, expected",
        [(1, 45), (4, 45), (5, 60), (6, 60), (8, 60), (9, 75), (10, 75), (12, 75), (13, 90), (14, 90), (40, 90)],
    )
    def test_policy_table(self, performers, expected):
        assert time_budget.scale_for_performer_count(60, performers) == expected

    def test_truncates_to_whole_minutes(self):
        assert time_budget.scale_for_performer_count(7, 2) == 5  # 5.25
        assert time_budget.scale_for_performer_count(7, 10) == 8  # 8.75

    def test_rejects_empty_group(self):
        with pytest.raises(ValidationError):
            time_budget.scale_for_performer_count(60, 0)


class TestFormatDuration:
    @pytest.mark.parametrize(
        "minutes, text",
        [
            (0, "0 min"),
            (None, "0 min"),
            (45, "45 min"),
            (59, "59 min"),
            (60, "1 hour"),
            (75, "1 hour 15 min"),
            (120, "2 hours"),
            (135, "2 hours 15 min"),
        ],
    )
    def test_golden_output(self, minutes, text):
        assert time_budget.format_duration(minutes) == text
