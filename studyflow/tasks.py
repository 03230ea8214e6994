"""
tasks.py - Task manager endpoints

All routes operate on the caller's own tasks. A task id that does not exist
under the caller's uid is reported as 404, whether or not another user owns a
task with that id.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from .auth import get_current_uid
from .models import TaskStatus
from .schemas import TaskCreate, TaskUpdate
from .store import FirestoreStore, get_store
from .utils import api_response

_logger = logging.getLogger(__name__)
router = APIRouter()


def _task_or_404(task):
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found.")
    return task


@router.get("")
async def list_tasks(uid: str = Depends(get_current_uid), store: FirestoreStore = Depends(get_store)):
    """Tasks ordered by deadline, earliest first; undated tasks last."""
    tasks = store.get_user_tasks(uid)
    return api_response([task.model_dump(mode="json") for task in tasks], "Tasks fetched successfully")


@router.post("", status_code=201)
async def create_task(
    payload: TaskCreate,
    uid: str = Depends(get_current_uid),
    store: FirestoreStore = Depends(get_store),
):
    task = store.create_task(uid, payload.model_dump())
    _logger.info("Created task %s for user %s", task.id, uid)
    return api_response(task.model_dump(mode="json"), "Task created successfully")


@router.api_route("/{task_id}", methods=["PUT", "PATCH"])
async def edit_task(
    task_id: str,
    payload: TaskUpdate,
    uid: str = Depends(get_current_uid),
    store: FirestoreStore = Depends(get_store),
):
    """Partial edit; only fields present in the body are changed."""
    updates = {
        key: value
        for key, value in payload.model_dump(mode="json", exclude_unset=True).items()
        # deadline is the only field that may be cleared
        if value is not None or key == "deadline"
    }
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update.")

    task = _task_or_404(store.update_task(uid, task_id, updates))
    _logger.info("Updated task %s for user %s: %s", task_id, uid, sorted(updates))
    return api_response(task.model_dump(mode="json"), "Task updated successfully")


@router.patch("/{task_id}/complete")
async def complete_task(task_id: str, uid: str = Depends(get_current_uid), store: FirestoreStore = Depends(get_store)):
    task = _task_or_404(store.update_task(uid, task_id, {"status": TaskStatus.COMPLETED.value}))
    return api_response(task.model_dump(mode="json"), "Task marked as completed")


@router.patch("/{task_id}/uncomplete")
async def uncomplete_task(task_id: str, uid: str = Depends(get_current_uid), store: FirestoreStore = Depends(get_store)):
    task = _task_or_404(store.update_task(uid, task_id, {"status": TaskStatus.PENDING.value}))
    return api_response(task.model_dump(mode="json"), "Task marked as pending")


@router.delete("/{task_id}")
async def delete_task(task_id: str, uid: str = Depends(get_current_uid), store: FirestoreStore = Depends(get_store)):
    if not store.delete_task(uid, task_id):
        raise HTTPException(status_code=404, detail="Task not found.")
    _logger.info("Deleted task %s for user %s", task_id, uid)
    return api_response([], "Task deleted successfully")
