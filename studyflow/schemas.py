"""Request bodies accepted by the HTTP API."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from .models import Category, ExamDate, Priority, TaskStatus
from .utils import coerce_number


# --- Auth / profile ---

class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    goals: Optional[List[str]] = None
    exam_dates: Optional[List[ExamDate]] = Field(
        default=None, validation_alias=AliasChoices("exam_dates", "examDates")
    )
    profile_picture: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("profile_picture", "profilePicture")
    )


# --- Settings ---

class DarkModeUpdate(BaseModel):
    dark_mode: Optional[bool] = None


class ThemeUpdate(BaseModel):
    theme: Optional[str] = None


# --- Tasks ---

class TaskCreate(BaseModel):
    title: str = Field(min_length=1)
    deadline: Optional[datetime] = None
    duration_mins: int = Field(
        default=0, ge=0, validation_alias=AliasChoices("duration_mins", "durationMinutes")
    )
    priority: Priority = Priority.MEDIUM
    category: Category = Category.OTHER


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    deadline: Optional[datetime] = None
    duration_mins: Optional[int] = Field(
        default=None, ge=0, validation_alias=AliasChoices("duration_mins", "durationMinutes")
    )
    priority: Optional[Priority] = None
    category: Optional[Category] = None
    status: Optional[TaskStatus] = None


# --- Routines ---

class DailyLogIn(BaseModel):
    log_date: Optional[date] = None
    felt_today: Optional[str] = None
    study_hours: float = Field(default=0, ge=0)
    screen_hours: float = Field(default=0, ge=0)
    exercise_mins: int = Field(
        default=0, ge=0, validation_alias=AliasChoices("exercise_mins", "exercise_minutes")
    )
    wake_up_time: Optional[str] = None
    sleep_time: Optional[str] = None

    @field_validator("study_hours", "screen_hours", mode="before")
    @classmethod
    def _coerce_hours(cls, value):
        # Malformed numbers count as 0 instead of failing the whole log
        return coerce_number(value)

    @field_validator("exercise_mins", mode="before")
    @classmethod
    def _coerce_minutes(cls, value):
        return int(coerce_number(value))


# --- Insights ---

class ChatRequest(BaseModel):
    query: str = Field(min_length=1)
    context: str = ""


class DailyAnalysisRequest(BaseModel):
    date: str
    study_hours: float = 0
    mood: float = 0
    completed: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    score: float = 0
