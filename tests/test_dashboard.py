from datetime import date, timedelta

from studyflow.dashboard import build_dashboard_summary, productivity_change
from studyflow.models import DailyLog, Task

START = date(2025, 3, 3)  # a Monday


def make_logs(study_hours, start=START, wellbeing=None, screen=None):
    """Logs for consecutive days starting at `start`, returned newest-first."""
    logs = []
    for i, hours in enumerate(study_hours):
        logs.append(DailyLog(
            uid="user-1",
            log_date=start + timedelta(days=i),
            study_hours=hours,
            screen_hours=(screen[i] if screen else 1.5),
            wellbeing_score=(wellbeing[i] if wellbeing else 5),
        ))
    return list(reversed(logs))


def make_task(status="Pending", idx=0):
    return Task(id=f"t{idx}", uid="user-1", title=f"Task {idx}", status=status)


def test_empty_logs_report_zero_everywhere():
    tasks = [make_task("Completed", 1), make_task("Pending", 2)]
    summary = build_dashboard_summary(tasks, [], full_name=None)

    assert summary["total_tasks"] == 2
    assert summary["completed_tasks"] == 1
    assert summary["avg_study_hours"] == 0
    assert summary["avg_wellbeing"] == 0
    assert summary["productivity_score"] == 0
    assert summary["productivity_change"] == 0
    assert summary["study_past_7_days"] == []
    assert summary["first_name"] == "User"


def test_single_log_average_keeps_two_decimals():
    summary = build_dashboard_summary([], make_logs([4.2]))
    assert summary["avg_study_hours"] == 4.2


def test_week_average_and_change_against_previous_week():
    previous_week = make_logs([1, 2, 1, 2, 1, 2, 1], start=START - timedelta(days=7))  # 10 hours
    this_week = make_logs([2, 3, 4, 2, 5, 1, 3])  # 20 hours
    summary = build_dashboard_summary([], this_week + previous_week)

    assert summary["avg_study_hours"] == 2.86
    assert summary["productivity_change"] == 100.0


def test_productivity_change_rules():
    assert productivity_change(5, 0) == 100
    assert productivity_change(0, 0) == 0
    assert productivity_change(15, 10) == 50.0
    assert productivity_change(5, 10) == -50.0
    assert productivity_change(10, 3) == 233.33


def test_wellbeing_average_and_productivity_score():
    logs = make_logs([1] * 7, wellbeing=[7, 8, 6, 9, 7, 8, 6])  # mean 7.2857
    summary = build_dashboard_summary([], logs)

    assert summary["avg_wellbeing"] == 7.3
    assert summary["productivity_score"] == 73


def test_productivity_score_never_exceeds_100():
    summary = build_dashboard_summary([], make_logs([1] * 3, wellbeing=[10, 10, 10]))
    assert summary["productivity_score"] == 100


def test_only_seven_most_recent_logs_are_averaged():
    logs = make_logs([10] * 3, start=START - timedelta(days=3))
    recent = make_logs([1] * 7, start=START)
    summary = build_dashboard_summary([], recent + logs)
    assert summary["avg_study_hours"] == 1.0


def test_trends_are_chronological_with_dates():
    logs = make_logs([1, 2, 3], screen=[4, 5, 6], wellbeing=[3, 5, 7])
    summary = build_dashboard_summary([], logs)

    assert summary["study_past_7_days"] == [
        {"date": "2025-03-03", "study_hours": 1.0},
        {"date": "2025-03-04", "study_hours": 2.0},
        {"date": "2025-03-05", "study_hours": 3.0},
    ]
    assert [p["screen_hours"] for p in summary["screen_past_7_days"]] == [4, 5, 6]
    assert [p["wellbeing_score"] for p in summary["wellbeing_past_7_days"]] == [3, 5, 7]


def test_first_name_is_taken_from_full_name():
    assert build_dashboard_summary([], [], full_name="Ada Lovelace")["first_name"] == "Ada"


def test_dashboard_endpoint(client, store):
    store.create_user("user-1", {"name": "Sam Rivera"})
    for day, hours in enumerate([2, 3, 4, 2, 5, 1, 3]):
        store.upsert_daily_log("user-1", START + timedelta(days=day), {
            "study_hours": hours, "screen_hours": 2, "wellbeing_score": 6,
        })
    done = store.create_task("user-1", {"title": "Essay"})
    store.update_task("user-1", done.id, {"status": "Completed"})
    store.create_task("user-1", {"title": "Lab report"})
    store.create_task("someone-else", {"title": "Not mine"})

    resp = client.get("/api/v1/dashboard")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["first_name"] == "Sam"
    assert data["total_tasks"] == 2
    assert data["completed_tasks"] == 1
    assert data["avg_study_hours"] == 2.86
    assert data["productivity_score"] == 60
    assert data["productivity_change"] == 100
    assert data["study_past_7_days"][0]["date"] == "2025-03-03"
    assert len(data["wellbeing_past_7_days"]) == 7


def test_dashboard_endpoint_for_new_user(client):
    data = client.get("/api/v1/dashboard").json()["data"]
    assert data["total_tasks"] == 0
    assert data["avg_study_hours"] == 0
    assert data["productivity_change"] == 0
