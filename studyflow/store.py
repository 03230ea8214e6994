"""
store.py - Firestore persistence for users, tasks and daily logs

Layout:
    users/{uid}                         -> User document
    users/{uid}/tasks/{task_id}         -> Task documents (auto ids)
    users/{uid}/daily_logs/{YYYY-MM-DD} -> one DailyLog per calendar day

Tasks and logs live under the owner's user document, so every read and write
is scoped by uid through the document path alone. Daily logs use the date as
document id and are written with a full set() (no merge): logging the same day
twice overwrites the earlier entry entirely.

A FirestoreStore is created per request by the `get_store` dependency and can
be swapped for any object with the same methods in tests.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from google.cloud import firestore

from .gcp_clients import get_firestore_client
from .models import DailyLog, Task, User, utc_now_iso

_logger = logging.getLogger(__name__)

FIRESTORE_USERS_COLLECTION = "users"
FIRESTORE_TASKS_SUBCOLLECTION = "tasks"
FIRESTORE_LOGS_SUBCOLLECTION = "daily_logs"

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def sort_tasks_by_deadline(tasks: List[Task]) -> List[Task]:
    """Earliest deadline first; tasks without a deadline go last."""
    return sorted(tasks, key=lambda t: (t.deadline is None, t.deadline or _FAR_FUTURE))


class FirestoreStore:
    def __init__(self, client: firestore.Client):
        self._client = client

    # -------------------------
    # References
    # -------------------------
    def _user_ref(self, uid: str):
        return self._client.collection(FIRESTORE_USERS_COLLECTION).document(uid)

    def _tasks_ref(self, uid: str):
        return self._user_ref(uid).collection(FIRESTORE_TASKS_SUBCOLLECTION)

    def _logs_ref(self, uid: str):
        return self._user_ref(uid).collection(FIRESTORE_LOGS_SUBCOLLECTION)

    # -------------------------
    # Users
    # -------------------------
    def get_user(self, uid: str) -> Optional[User]:
        doc = self._user_ref(uid).get()
        if not doc.exists:
            return None
        return User.model_validate({**doc.to_dict(), "uid": uid})

    def create_user(self, uid: str, fields: Optional[Dict[str, Any]] = None) -> User:
        now = utc_now_iso()
        user = User(uid=uid, created_at=now, updated_at=now, **(fields or {}))
        self._user_ref(uid).set(user.model_dump(mode="json"))
        _logger.info("Created user document for uid %s", uid)
        return user

    def get_or_create_user(self, uid: str) -> User:
        return self.get_user(uid) or self.create_user(uid)

    def update_user(self, uid: str, fields: Dict[str, Any]) -> Optional[User]:
        """Apply a partial update. Values must already be JSON-compatible."""
        ref = self._user_ref(uid)
        if not ref.get().exists:
            return None
        ref.update({**fields, "updated_at": utc_now_iso()})
        return self.get_user(uid)

    # -------------------------
    # Tasks
    # -------------------------
    def get_user_tasks(self, uid: str) -> List[Task]:
        tasks = [
            Task.model_validate({**doc.to_dict(), "id": doc.id, "uid": uid})
            for doc in self._tasks_ref(uid).stream()
        ]
        return sort_tasks_by_deadline(tasks)

    def get_task(self, uid: str, task_id: str) -> Optional[Task]:
        doc = self._tasks_ref(uid).document(task_id).get()
        if not doc.exists:
            return None
        return Task.model_validate({**doc.to_dict(), "id": doc.id, "uid": uid})

    def create_task(self, uid: str, fields: Dict[str, Any]) -> Task:
        doc_ref = self._tasks_ref(uid).document()
        now = utc_now_iso()
        task = Task(id=doc_ref.id, uid=uid, created_at=now, updated_at=now, **fields)
        doc_ref.set(task.model_dump(mode="json", exclude={"id"}))
        return task

    def update_task(self, uid: str, task_id: str, fields: Dict[str, Any]) -> Optional[Task]:
        doc_ref = self._tasks_ref(uid).document(task_id)
        if not doc_ref.get().exists:
            return None
        doc_ref.update({**fields, "updated_at": utc_now_iso()})
        return self.get_task(uid, task_id)

    def delete_task(self, uid: str, task_id: str) -> bool:
        doc_ref = self._tasks_ref(uid).document(task_id)
        if not doc_ref.get().exists:
            return False
        doc_ref.delete()
        return True

    # -------------------------
    # Daily logs
    # -------------------------
    def get_user_logs(self, uid: str, limit: Optional[int] = None, order: str = "desc") -> List[DailyLog]:
        direction = firestore.Query.DESCENDING if order == "desc" else firestore.Query.ASCENDING
        query = self._logs_ref(uid).order_by("log_date", direction=direction)
        if limit:
            query = query.limit(limit)
        return [DailyLog.model_validate({**doc.to_dict(), "uid": uid}) for doc in query.stream()]

    def upsert_daily_log(self, uid: str, log_date: date, fields: Dict[str, Any]) -> DailyLog:
        log = DailyLog(uid=uid, log_date=log_date, updated_at=utc_now_iso(), **fields)
        # Full overwrite keyed on the date; no field-level merge with an earlier entry
        self._logs_ref(uid).document(log_date.isoformat()).set(log.model_dump(mode="json"))
        return log


def get_store() -> FirestoreStore:
    """FastAPI dependency providing the persistence collaborator."""
    client = get_firestore_client()
    if not client:
        _logger.error("Request failed: Could not connect to Firestore.")
        raise HTTPException(status_code=500, detail="Database connection failed.")
    return FirestoreStore(client)
