"""
insights.py - AI insight generation and history

This module provides API endpoints and helper functions to:
- Build a coaching prompt from the user's profile, tasks and last 7 daily logs.
- Ask Gemini (Vertex AI) for schema-constrained JSON: short insights, a
  suggested schedule for today and a 0-100 productivity score.
- Keep a bounded history (max 10, oldest evicted) of generated insights on
  the user document.
- Answer short free-form questions and analyse a single day's score.

Design notes:
- Generation is not cached or deduplicated; every call is a fresh request.
- Model output is validated against AIInsight before anything is written. On
  any failure the endpoint answers 503 and the stored history is untouched.
- The history is written back in a single document update, so a reader never
  sees a half-appended list.
- Generators are FastAPI dependencies so tests can substitute them.
"""

import json
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Sequence

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from .auth import get_current_uid
from .config import DASHBOARD_WINDOW_DAYS, INSIGHT_HISTORY_LIMIT, LOCAL_TIMEZONE
from .gcp_clients import GenerationError, vertex_generate_json, vertex_generate_text
from .models import AIInsight, DailyLog, Task, User
from .schemas import ChatRequest, DailyAnalysisRequest
from .store import FirestoreStore, get_store
from .utils import api_response

# Module logger
_logger = logging.getLogger(__name__)
router = APIRouter()

JsonGenerator = Callable[..., Awaitable[Dict[str, Any]]]
TextGenerator = Callable[..., Awaitable[str]]

INSIGHT_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "insights": {"type": "ARRAY", "items": {"type": "STRING"}},
        "suggestedSchedule": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "time": {"type": "STRING"},
                    "activity": {"type": "STRING"},
                    "note": {"type": "STRING"},
                },
                "required": ["time", "activity"],
            },
        },
        "productivityScore": {"type": "NUMBER"},
    },
    "required": ["insights", "suggestedSchedule", "productivityScore"],
}

DAILY_ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "analysis": {"type": "STRING"},
        "tip": {"type": "STRING"},
    },
    "required": ["analysis", "tip"],
}


class InsightGenerationError(Exception):
    """The generation service failed or returned output that cannot be stored."""


# -------------------------
# Dependency helpers
# -------------------------
def get_json_generator() -> JsonGenerator:
    return vertex_generate_json


def get_text_generator() -> TextGenerator:
    return vertex_generate_text


# -------------------------
# History bookkeeping
# -------------------------
def append_to_history(history: Sequence[AIInsight], insight: AIInsight, limit: int = INSIGHT_HISTORY_LIMIT) -> List[AIInsight]:
    """
    Return a new history list with `insight` appended, evicting the oldest
    entries first so the result never exceeds `limit`.
    """
    updated = list(history)
    while updated and len(updated) >= limit:
        updated.pop(0)
    updated.append(insight)
    return updated


# -------------------------
# Prompt construction
# -------------------------
def build_insight_prompt(user: User, tasks: Sequence[Task], logs: Sequence[DailyLog], today: str) -> str:
    """Coaching prompt over the profile, every task and the recent logs."""
    profile = {
        "name": user.name,
        "goals": user.goals,
        "exam_dates": [exam.model_dump() for exam in user.exam_dates],
    }
    task_rows = [
        task.model_dump(mode="json", include={"title", "deadline", "duration_mins", "priority", "category", "status"})
        for task in tasks
    ]
    log_rows = [log.model_dump(mode="json", exclude={"uid", "updated_at"}) for log in logs]

    return (
        "Act as an elite Student Productivity Coach. Analyze the following data.\n\n"
        f"Today's date: {today}\n"
        f"UserProfile: {json.dumps(profile)}\n"
        f"Current Tasks (Pending & Completed): {json.dumps(task_rows)}\n"
        f"Recent Routine Logs (Last {DASHBOARD_WINDOW_DAYS} days): {json.dumps(log_rows)}\n\n"
        "Provide a structured analysis containing:\n"
        "1. 'insights': 3-4 short, punchy insights about the student's habits "
        "(e.g., \"You study best on days you exercise\", \"Screen time negatively impacts your sleep\").\n"
        "2. 'suggestedSchedule': a simplified schedule for the current day based on pending tasks and "
        "typical wake/sleep times. Each entry has 'time' (HH:MM), 'activity' and an optional 'note'. "
        "Minimize overlap. Prioritize 'Urgent' and 'High' tasks.\n"
        "3. 'productivityScore': a number from 0 to 100 based on task completion and healthy routine habits.\n\n"
        "JSON response only."
    )


# -------------------------
# Orchestration
# -------------------------
async def generate_insight(store: FirestoreStore, uid: str, generate_json: JsonGenerator) -> AIInsight:
    """
    Generate a new insight for `uid`, append it to the stored history and return it.

    Raises InsightGenerationError if generation fails or its output is invalid;
    nothing is written in that case.
    """
    user = store.get_or_create_user(uid)
    tasks = store.get_user_tasks(uid)
    logs = store.get_user_logs(uid, limit=DASHBOARD_WINDOW_DAYS, order="desc")

    today = datetime.now(LOCAL_TIMEZONE).date().isoformat()
    prompt = build_insight_prompt(user, tasks, logs, today)

    try:
        raw = await generate_json(prompt, response_schema=INSIGHT_RESPONSE_SCHEMA, temperature=0.4)
    except GenerationError as e:
        raise InsightGenerationError(str(e)) from e

    try:
        insight = AIInsight.model_validate(
            {
                "insights": raw.get("insights"),
                "suggestedSchedule": raw.get("suggestedSchedule"),
                "productivityScore": raw.get("productivityScore"),
            }
        )
    except (ValidationError, AttributeError) as e:
        _logger.warning("Discarding malformed insight for user %s: %s", uid, e)
        raise InsightGenerationError("Generated insight did not match the expected structure") from e

    # Re-read so appends made while the model call was in flight are kept
    current = store.get_user(uid) or user
    history = append_to_history(current.recommendations, insight)
    store.update_user(uid, {"recommendations": [item.model_dump(mode="json") for item in history]})
    _logger.info("Stored new insight %s for user %s (history size %d)", insight.id, uid, len(history))
    return insight


def get_insight_history(store: FirestoreStore, uid: str) -> List[AIInsight]:
    user = store.get_user(uid)
    return list(user.recommendations) if user else []


# -------------------------
# API endpoints
# -------------------------
@router.get("")
async def get_insights(uid: str = Depends(get_current_uid), store: FirestoreStore = Depends(get_store)):
    """Stored insight history, oldest first."""
    history = get_insight_history(store, uid)
    return api_response([item.model_dump(mode="json") for item in history], "Insights fetched")


@router.post("/generate")
async def generate_insights(
    uid: str = Depends(get_current_uid),
    store: FirestoreStore = Depends(get_store),
    generate_json: JsonGenerator = Depends(get_json_generator),
):
    try:
        insight = await generate_insight(store, uid, generate_json)
    except InsightGenerationError as e:
        _logger.error("Insight generation failed for user %s: %s", uid, e)
        raise HTTPException(status_code=503, detail="AI insight service is unavailable. Please try again later.")
    return api_response(insight.model_dump(mode="json"), "New insight generated")


@router.post("/chat")
async def quick_advice(
    payload: ChatRequest,
    uid: str = Depends(get_current_uid),
    generate_text: TextGenerator = Depends(get_text_generator),
):
    """Answer a short question in two sentences."""
    prompt = (
        f"Context: {payload.context}.\n\n"
        f"User Question: {payload.query}\n\n"
        "Answer concisely in 2 sentences."
    )
    try:
        answer = await generate_text(prompt, temperature=0.7)
    except GenerationError as e:
        _logger.error("Quick advice failed for user %s: %s", uid, e)
        raise HTTPException(status_code=503, detail="AI advice service is unavailable. Please try again later.")
    return api_response(answer, "Response generated")


@router.post("/daily-analysis")
async def daily_score_analysis(
    payload: DailyAnalysisRequest,
    uid: str = Depends(get_current_uid),
    generate_json: JsonGenerator = Depends(get_json_generator),
):
    """Two-sentence explanation of a day's score plus one tip for tomorrow."""
    prompt = (
        f"Analyze the daily productivity score of {payload.score}/100 for {payload.date}.\n"
        "Metrics:\n"
        f"- Study Hours: {payload.study_hours}\n"
        f"- Mood Rating: {payload.mood}/10\n"
        f"- Tasks Completed: {payload.completed}/{payload.total}\n\n"
        "Output Requirements:\n"
        "1. analysis: A 2-sentence psychological analysis of why the score is high/low based on the "
        "correlation between mood, study time, and task completion. Be specific.\n"
        "2. tip: A single, short, high-impact actionable tip for the next day to improve or maintain momentum.\n\n"
        "Tone: Professional, insightful, and encouraging."
    )
    try:
        raw = await generate_json(prompt, response_schema=DAILY_ANALYSIS_SCHEMA, temperature=0.5)
    except GenerationError as e:
        _logger.error("Daily analysis failed for user %s: %s", uid, e)
        raise HTTPException(status_code=503, detail="AI analysis service is unavailable. Please try again later.")

    analysis, tip = raw.get("analysis"), raw.get("tip")
    if not isinstance(analysis, str) or not isinstance(tip, str):
        _logger.warning("Daily analysis for user %s missing fields: %s", uid, sorted(raw))
        raise HTTPException(status_code=503, detail="AI analysis service returned an invalid response.")
    return api_response({"analysis": analysis, "tip": tip}, "Daily analysis generated")
