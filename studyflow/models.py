"""
models.py - Persisted record types

Every Firestore document is loaded through one of these models, which makes
them the single serialization boundary. List fields that older data stored as
JSON text are decoded here and nowhere else.
"""

import json
import math
import uuid
import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .utils import clamp

_logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def decode_json_list(value: Any) -> list:
    """Accept a list, JSON text holding a list, or None; always return a list."""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            _logger.warning("Discarding undecodable JSON list field: %.80s", value)
            return []
    if not isinstance(value, list):
        return []
    return value


class Mood(str, Enum):
    TERRIBLE = "Terrible"
    BAD = "Bad"
    OKAY = "Okay"
    GOOD = "Good"
    GREAT = "Great"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "Mood":
        """Map a free-form label to a Mood; unknown labels become Okay."""
        if label:
            normalized = str(label).strip().capitalize()
            for mood in cls:
                if mood.value == normalized:
                    return mood
        return cls.OKAY


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class Category(str, Enum):
    STUDY = "Study"
    HEALTH = "Health"
    PERSONAL = "Personal"
    WORK = "Work"
    OTHER = "Other"


class TaskStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class ColorTheme(str, Enum):
    OCEAN = "Ocean"
    ROYAL = "Royal"
    SKY = "Sky"
    SUNSET = "Sunset"


class ExamDate(BaseModel):
    subject: str
    date: str


class ScheduleItem(BaseModel):
    time: str
    activity: str
    note: Optional[str] = None


class AIInsight(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    # None only for history entries stored before timestamps were recorded
    created_at: Optional[str] = Field(default_factory=utc_now_iso)
    insights: List[str]
    suggestedSchedule: List[ScheduleItem]
    productivityScore: float

    @field_validator("productivityScore", mode="before")
    @classmethod
    def _clamp_score(cls, value):
        """Accept a finite number (or numeric text) and clamp it to 0-100."""
        if value is None or isinstance(value, bool):
            raise ValueError("productivityScore must be a number")
        try:
            score = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"productivityScore is not numeric: {value!r}")
        if math.isnan(score) or math.isinf(score):
            raise ValueError("productivityScore must be finite")
        return clamp(score, 0, 100)


def decode_insight_history(value: Any) -> List[AIInsight]:
    """
    Decode stored insight history one entry at a time.

    Entries written by older versions may lack `id`, `created_at` or a list
    field. Missing lists become empty, a missing id is derived from the entry's
    content so it stays the same across reads, and entries that still fail
    validation are dropped with a warning.
    """
    history = []
    for raw in decode_json_list(value):
        if isinstance(raw, AIInsight):
            history.append(raw)
            continue
        if not isinstance(raw, dict):
            _logger.warning("Dropping stored insight that is not an object: %.80r", raw)
            continue

        entry = dict(raw)
        for key in ("insights", "suggestedSchedule"):
            if entry.get(key) is None:
                entry[key] = []
        if not entry.get("id"):
            fingerprint = json.dumps(raw, sort_keys=True, default=str)
            entry["id"] = uuid.uuid5(uuid.NAMESPACE_OID, fingerprint).hex
        if not entry.get("created_at"):
            entry["created_at"] = None

        try:
            history.append(AIInsight.model_validate(entry))
        except ValidationError as e:
            _logger.warning("Dropping unreadable stored insight %s: %s", entry["id"], e)
    return history


class User(BaseModel):
    uid: str
    name: Optional[str] = None
    email: Optional[str] = None
    profile_picture: Optional[str] = None
    goals: List[str] = []
    exam_dates: List[ExamDate] = []
    # Oldest first, at most INSIGHT_HISTORY_LIMIT entries
    recommendations: List[AIInsight] = []
    dark_mode: bool = False
    color_theme: ColorTheme = ColorTheme.OCEAN
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("goals", "exam_dates", mode="before")
    @classmethod
    def _decode_lists(cls, value):
        return decode_json_list(value)

    @field_validator("recommendations", mode="before")
    @classmethod
    def _decode_history(cls, value):
        return decode_insight_history(value)

    def public_profile(self) -> dict:
        """Profile as returned to clients (insight history is served separately)."""
        return self.model_dump(mode="json", exclude={"recommendations"})


class Task(BaseModel):
    id: str
    uid: str
    title: str
    deadline: Optional[datetime] = None
    duration_mins: int = Field(default=0, ge=0)
    priority: Priority = Priority.MEDIUM
    category: Category = Category.OTHER
    status: TaskStatus = TaskStatus.PENDING
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("deadline")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED


class DailyLog(BaseModel):
    uid: str
    log_date: date
    felt_today: Mood = Mood.OKAY
    study_hours: float = Field(default=0, ge=0)
    screen_hours: float = Field(default=0, ge=0)
    exercise_mins: int = Field(default=0, ge=0)
    wake_up_time: Optional[str] = None
    sleep_time: Optional[str] = None
    wellbeing_score: int = Field(default=0, ge=0, le=10)
    updated_at: Optional[str] = None
