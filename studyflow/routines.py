"""
routines.py - Daily routine logging endpoints

- POST /        score a day's habits and upsert the log for that date.
- GET  /latest  the most recent logs, newest first.

One log exists per user per calendar day; re-submitting a date replaces the
previous entry and recomputes its wellbeing score.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from .auth import get_current_uid
from .config import LATEST_LOGS_LIMIT, LOCAL_TIMEZONE
from .models import Mood
from .schemas import DailyLogIn
from .scoring import compute_wellbeing_score
from .store import FirestoreStore, get_store
from .utils import api_response

_logger = logging.getLogger(__name__)
router = APIRouter()


def _today_local():
    return datetime.now(LOCAL_TIMEZONE).date()


@router.post("")
async def add_daily_log(
    payload: DailyLogIn,
    uid: str = Depends(get_current_uid),
    store: FirestoreStore = Depends(get_store),
):
    """
    Compute the wellbeing score and store the log.
    Returns the stored log (including `wellbeing_score`).
    """
    log_date = payload.log_date or _today_local()
    mood = Mood.from_label(payload.felt_today)
    if payload.felt_today and mood.value != str(payload.felt_today).strip().capitalize():
        _logger.warning("Unknown mood '%s' from user %s; recording as Okay.", payload.felt_today, uid)

    score = compute_wellbeing_score(
        felt_today=mood.value,
        study_hours=payload.study_hours,
        exercise_minutes=payload.exercise_mins,
        screen_hours=payload.screen_hours,
        wake_up_time=payload.wake_up_time,
        sleep_time=payload.sleep_time,
    )

    try:
        log = store.upsert_daily_log(uid, log_date, {
            "felt_today": mood,
            "study_hours": payload.study_hours,
            "screen_hours": payload.screen_hours,
            "exercise_mins": payload.exercise_mins,
            "wake_up_time": payload.wake_up_time,
            "sleep_time": payload.sleep_time,
            "wellbeing_score": score,
        })
    except HTTPException:
        raise
    except Exception as e:
        _logger.exception("Failed to save routine log for user %s: %s", uid, e)
        raise HTTPException(status_code=500, detail="Failed to save log entry.")
    _logger.info("Saved routine log for user %s on %s (score=%d)", uid, log_date, score)
    return api_response(log.model_dump(mode="json"), "Daily routine saved")


@router.get("/latest")
async def get_latest_logs(uid: str = Depends(get_current_uid), store: FirestoreStore = Depends(get_store)):
    logs = store.get_user_logs(uid, limit=LATEST_LOGS_LIMIT, order="desc")
    return api_response([log.model_dump(mode="json") for log in logs], "Latest logs fetched")
