"""
scoring.py - Daily wellbeing score

Turns one day's logged habits into an integer score from 0 to 10:

    mood*0.5 + study_hours*0.5 + exercise_minutes/30 + sleep_hours*0.4 - screen_hours*0.2

clamped to [0, 10] and rounded half away from zero.

Sleep is measured from `sleep_time` to `wake_up_time`. When the wake clock
time is earlier than the sleep clock time, waking happens on the following
day, so 23:00 -> 07:00 is 8 hours rather than 16.

The scorer is pure and never raises: malformed input is coerced to 0.
"""

from datetime import datetime, time
from typing import Any, Optional

from .utils import clamp, coerce_number, round_half_away

MOOD_SCORES = {
    "Terrible": 1,
    "Bad": 3,
    "Okay": 5,
    "Good": 7,
    "Great": 10,
}
DEFAULT_MOOD_SCORE = MOOD_SCORES["Okay"]

MAX_SCORE = 10
MIN_SCORE = 0

# Formula weights
MOOD_WEIGHT = 0.5
STUDY_WEIGHT = 0.5
EXERCISE_MINUTES_PER_POINT = 30
SLEEP_WEIGHT = 0.4
SCREEN_PENALTY = 0.2

_TIME_FORMATS = ("%H:%M:%S", "%H:%M")


def mood_score(mood: Optional[str]) -> int:
    """Numeric value of a mood label; unknown or missing moods count as Okay."""
    if mood is None:
        return DEFAULT_MOOD_SCORE
    return MOOD_SCORES.get(str(mood).strip().capitalize(), DEFAULT_MOOD_SCORE)


def parse_clock_time(value: Any) -> Optional[time]:
    """Parse 'HH:MM' or 'HH:MM:SS' (or a datetime.time). Returns None if unusable."""
    if value is None:
        return None
    if isinstance(value, time):
        return value
    text = str(value).strip()
    if not text:
        return None
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def sleep_duration_hours(sleep_time: Any, wake_up_time: Any) -> float:
    """
    Hours slept between `sleep_time` and `wake_up_time`.

    Returns 0 when either time is missing or unparsable.
    """
    slept = parse_clock_time(sleep_time)
    woke = parse_clock_time(wake_up_time)
    if slept is None or woke is None:
        return 0.0

    slept_seconds = slept.hour * 3600 + slept.minute * 60 + slept.second
    woke_seconds = woke.hour * 3600 + woke.minute * 60 + woke.second
    diff = woke_seconds - slept_seconds
    if diff < 0:
        diff += 24 * 3600
    return diff / 3600.0


def _non_negative(value: Any) -> float:
    return max(0.0, coerce_number(value))


def compute_wellbeing_score(
    felt_today: Optional[str],
    study_hours: Any = 0,
    exercise_minutes: Any = 0,
    screen_hours: Any = 0,
    wake_up_time: Any = None,
    sleep_time: Any = None,
) -> int:
    """Return the wellbeing score for one day, an int in [0, 10]."""
    raw = (
        mood_score(felt_today) * MOOD_WEIGHT
        + _non_negative(study_hours) * STUDY_WEIGHT
        + _non_negative(exercise_minutes) / EXERCISE_MINUTES_PER_POINT
        + sleep_duration_hours(sleep_time, wake_up_time) * SLEEP_WEIGHT
        - _non_negative(screen_hours) * SCREEN_PENALTY
    )
    return int(round_half_away(clamp(raw, MIN_SCORE, MAX_SCORE)))
