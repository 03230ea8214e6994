"""
dashboard.py - Weekly dashboard aggregation

Builds the dashboard summary from the user's tasks and recent daily logs:
- task totals (all tasks, not time-windowed),
- 7-log averages of study hours and wellbeing,
- a 0-100 productivity score (the wellbeing average rescaled),
- week-over-week change in total study hours (latest 7 logs vs. the 7 before),
- chronological trend series for study hours, screen hours and wellbeing.

`build_dashboard_summary` is pure; the endpoint only gathers its inputs.
An empty log window yields zeros, never an error.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from fastapi import APIRouter, Depends, HTTPException

from .auth import get_current_uid
from .config import DASHBOARD_WINDOW_DAYS
from .models import DailyLog, Task
from .store import FirestoreStore, get_store
from .utils import api_response, first_name_of, round_half_away

_logger = logging.getLogger(__name__)
router = APIRouter()


def _mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def productivity_change(current_total: float, previous_total: float) -> float:
    """
    Percentage change between two study-hour totals.

    previous == 0 and current > 0 -> 100; both 0 -> 0; otherwise the
    relative change in percent, 2 decimals.
    """
    if previous_total == 0:
        return 100.0 if current_total > 0 else 0.0
    return round_half_away(((current_total - previous_total) / previous_total) * 100, 2)


def _trend(window: List[DailyLog], field: str) -> List[Dict[str, Any]]:
    # Window arrives newest-first; charts want oldest-first
    return [{"date": log.log_date.isoformat(), field: getattr(log, field)} for log in reversed(window)]


def build_dashboard_summary(
    tasks: Sequence[Task],
    logs: Sequence[DailyLog],
    full_name: Optional[str] = None,
    window_size: int = DASHBOARD_WINDOW_DAYS,
) -> Dict[str, Any]:
    """
    Aggregate tasks and logs into the dashboard payload.

    `logs` must be ordered newest-first; only the first 2 * window_size are used.
    """
    window = list(logs[:window_size])
    previous = list(logs[window_size:window_size * 2])

    study = [log.study_hours for log in window]
    wellbeing = [log.wellbeing_score for log in window]

    avg_study_hours = round_half_away(_mean(study), 2)
    avg_wellbeing = round_half_away(_mean(wellbeing), 1)
    productivity_score = min(100, round_half_away(avg_wellbeing * 10))

    current_total = float(np.sum(study)) if study else 0.0
    previous_total = float(np.sum([log.study_hours for log in previous])) if previous else 0.0

    return {
        "first_name": first_name_of(full_name),
        "total_tasks": len(tasks),
        "completed_tasks": sum(1 for task in tasks if task.completed),
        "avg_study_hours": avg_study_hours,
        "avg_wellbeing": avg_wellbeing,
        "productivity_score": productivity_score,
        "productivity_change": productivity_change(current_total, previous_total),
        "study_past_7_days": _trend(window, "study_hours"),
        "screen_past_7_days": _trend(window, "screen_hours"),
        "wellbeing_past_7_days": _trend(window, "wellbeing_score"),
    }


@router.get("")
async def get_dashboard(uid: str = Depends(get_current_uid), store: FirestoreStore = Depends(get_store)):
    try:
        user = store.get_or_create_user(uid)
        tasks = store.get_user_tasks(uid)
        logs = store.get_user_logs(uid, limit=DASHBOARD_WINDOW_DAYS * 2, order="desc")
    except HTTPException:
        raise
    except Exception as e:
        _logger.exception("Failed to load dashboard inputs for user %s: %s", uid, e)
        raise HTTPException(status_code=500, detail="Could not retrieve dashboard data.")

    summary = build_dashboard_summary(tasks, logs, full_name=user.name)
    _logger.debug("Dashboard for %s built from %d tasks and %d logs", uid, len(tasks), len(logs))
    return api_response(summary, "Got dashboard stats successfully")
