import itertools

import pytest
from fastapi.testclient import TestClient

from studyflow.auth import get_current_uid
from studyflow.insights import get_json_generator, get_text_generator
from studyflow.main import app
from studyflow.models import DailyLog, Task, User, utc_now_iso
from studyflow.store import get_store, sort_tasks_by_deadline


class InMemoryStore:
    """Dict-backed stand-in for FirestoreStore; documents are kept as plain dicts."""

    def __init__(self):
        self.users = {}
        self.tasks = {}
        self.logs = {}
        self._ids = itertools.count(1)

    # Users
    def get_user(self, uid):
        if uid not in self.users:
            return None
        return User.model_validate({**self.users[uid], "uid": uid})

    def create_user(self, uid, fields=None):
        now = utc_now_iso()
        user = User(uid=uid, created_at=now, updated_at=now, **(fields or {}))
        self.users[uid] = user.model_dump(mode="json")
        return user

    def get_or_create_user(self, uid):
        return self.get_user(uid) or self.create_user(uid)

    def update_user(self, uid, fields):
        if uid not in self.users:
            return None
        self.users[uid].update(fields, updated_at=utc_now_iso())
        return self.get_user(uid)

    # Tasks
    def get_user_tasks(self, uid):
        docs = self.tasks.get(uid, {})
        return sort_tasks_by_deadline(
            [Task.model_validate({**doc, "id": task_id, "uid": uid}) for task_id, doc in docs.items()]
        )

    def get_task(self, uid, task_id):
        doc = self.tasks.get(uid, {}).get(task_id)
        if doc is None:
            return None
        return Task.model_validate({**doc, "id": task_id, "uid": uid})

    def create_task(self, uid, fields):
        task_id = f"task-{next(self._ids)}"
        now = utc_now_iso()
        task = Task(id=task_id, uid=uid, created_at=now, updated_at=now, **fields)
        self.tasks.setdefault(uid, {})[task_id] = task.model_dump(mode="json", exclude={"id"})
        return task

    def update_task(self, uid, task_id, fields):
        doc = self.tasks.get(uid, {}).get(task_id)
        if doc is None:
            return None
        doc.update(fields, updated_at=utc_now_iso())
        return self.get_task(uid, task_id)

    def delete_task(self, uid, task_id):
        return self.tasks.get(uid, {}).pop(task_id, None) is not None

    # Daily logs
    def get_user_logs(self, uid, limit=None, order="desc"):
        docs = self.logs.get(uid, {})
        dates = sorted(docs, reverse=(order == "desc"))
        if limit:
            dates = dates[:limit]
        return [DailyLog.model_validate({**docs[d], "uid": uid}) for d in dates]

    def upsert_daily_log(self, uid, log_date, fields):
        log = DailyLog(uid=uid, log_date=log_date, updated_at=utc_now_iso(), **fields)
        self.logs.setdefault(uid, {})[log_date.isoformat()] = log.model_dump(mode="json")
        return log


class FakeGenerators:
    """Scriptable replacements for the Vertex AI generators."""

    def __init__(self):
        self.json_calls = []
        self.text_calls = []
        self.json_result = None
        self.text_result = "Take a short break. Then start with your most urgent task."
        self.error = None

    async def generate_json(self, prompt, response_schema=None, **kwargs):
        self.json_calls.append({"prompt": prompt, "schema": response_schema})
        if self.error:
            raise self.error
        if callable(self.json_result):
            return self.json_result(len(self.json_calls))
        return self.json_result

    async def generate_text(self, prompt, **kwargs):
        self.text_calls.append(prompt)
        if self.error:
            raise self.error
        return self.text_result


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def generators():
    return FakeGenerators()


@pytest.fixture
def current_user():
    """Mutable holder for the uid the fake auth dependency returns."""
    return {"uid": "user-1"}


@pytest.fixture
def client(store, generators, current_user):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_current_uid] = lambda: current_user["uid"]
    app.dependency_overrides[get_json_generator] = lambda: generators.generate_json
    app.dependency_overrides[get_text_generator] = lambda: generators.generate_text
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
