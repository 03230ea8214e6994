import pytest

from studyflow.scoring import (
    MOOD_SCORES,
    compute_wellbeing_score,
    mood_score,
    parse_clock_time,
    sleep_duration_hours,
)
from studyflow.utils import round_half_away


@pytest.mark.parametrize("mood,expected", [
    ("Terrible", 1),  # 0.5 rounds up
    ("Bad", 2),       # 1.5
    ("Okay", 3),      # 2.5
    ("Good", 4),      # 3.5
    ("Great", 5),
])
def test_mood_only_score(mood, expected):
    assert compute_wellbeing_score(mood, 0, 0, 0, None, None) == expected
    assert expected == round_half_away(min(10, max(0, MOOD_SCORES[mood] * 0.5)))


def test_unknown_or_missing_mood_counts_as_okay():
    assert mood_score(None) == 5
    assert mood_score("Ecstatic") == 5
    assert mood_score("great") == 10
    assert compute_wellbeing_score(None) == compute_wellbeing_score("Okay")


def test_sleep_crossing_midnight_is_counted_forward():
    assert sleep_duration_hours("23:00", "07:00") == 8.0
    assert sleep_duration_hours("01:00", "08:00") == 7.0
    assert sleep_duration_hours("22:30:00", "06:15") == 7.75


def test_sleep_is_zero_without_both_times():
    assert sleep_duration_hours(None, "07:00") == 0.0
    assert sleep_duration_hours("23:00", None) == 0.0
    assert sleep_duration_hours("late", "07:00") == 0.0
    assert sleep_duration_hours("07:00", "07:00") == 0.0


def test_parse_clock_time_formats():
    assert parse_clock_time("07:05").minute == 5
    assert parse_clock_time("07:05:30").second == 30
    assert parse_clock_time("") is None
    assert parse_clock_time("25:00") is None


def test_great_day_with_overnight_sleep_caps_at_ten():
    # 5 + 3 + 2 + 8*0.4 - 0.4 = 12.8 -> clamped
    score = compute_wellbeing_score("Great", study_hours=6, exercise_minutes=60, screen_hours=2,
                                    wake_up_time="07:00", sleep_time="23:00")
    assert score == 10


def test_sleep_contributes_to_score():
    # 2.5 + 8*0.4 = 5.7
    assert compute_wellbeing_score("Okay", wake_up_time="07:00", sleep_time="23:00") == 6


def test_negative_raw_score_is_floored_at_zero():
    # 0.5 - 20*0.2 = -3.5
    assert compute_wellbeing_score("Terrible", screen_hours=20) == 0


def test_malformed_numbers_are_coerced_to_zero():
    assert compute_wellbeing_score("Okay", study_hours="abc", exercise_minutes=None,
                                   screen_hours=float("nan")) == 3
    assert compute_wellbeing_score("Okay", study_hours="2") == 4  # 2.5 + 1.0 = 3.5


def test_score_is_always_an_int_between_zero_and_ten():
    for mood in list(MOOD_SCORES) + [None, "???"]:
        for study in (0, 0.5, 3, 12, -4):
            for screen in (0, 4, 30):
                for exercise in (0, 45, 600):
                    score = compute_wellbeing_score(mood, study, exercise, screen, "06:30", "23:45")
                    assert isinstance(score, int)
                    assert 0 <= score <= 10
