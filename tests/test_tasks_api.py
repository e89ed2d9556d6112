# tests/test_tasks_api.py
# PURPOSE: task CRUD, visibility, assignee/supervisor rules and comments.

from typing import Dict


def _create_task(client, owner, assignee, supervisor, title: str = "Write report", **extra) -> Dict:
    """Helper: create a task as `owner` and return response JSON."""
    payload = {
        "title": title,
        "description": "Quarterly numbers",
        "assignee_id": assignee["id"],
        "supervisor_id": supervisor["id"],
        **extra,
    }
    r = client.post("/api/tasks/", json=payload, headers=owner["headers"])
    assert r.status_code == 201, r.text
    return r.json()


def test_health_ok(client):
    # Simple healthcheck endpoint should return {"status": "ok"}
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_task_defaults_and_references(client, alice, bob):
    task = _create_task(client, alice, assignee=bob, supervisor=alice)
    assert task["kind"] == "task"
    assert task["status"] == "todo"  # default status on create
    assert task["priority"] == "medium"
    assert task["owner_id"] == alice["id"]
    # User references come back populated
    assert task["assignee"]["id"] == bob["id"]
    assert task["assignee"]["name"] == "Bob"
    assert task["supervisor"]["email"] == alice["email"]
    assert task["comments"] == []
    assert task["completed_at"] is None


def test_create_task_requires_fields(client, alice, bob):
    r = client.post(
        "/api/tasks/",
        json={"title": "No roles", "description": "x"},
        headers=alice["headers"],
    )
    assert r.status_code == 400

    r2 = client.post(
        "/api/tasks/",
        json={"title": "Bad id", "description": "x", "assignee_id": "abc", "supervisor_id": alice["id"]},
        headers=alice["headers"],
    )
    assert r2.status_code == 400


def test_create_task_unknown_users_404(client, alice):
    r = client.post(
        "/api/tasks/",
        json={"title": "Ghost", "description": "x", "assignee_id": 999, "supervisor_id": alice["id"]},
        headers=alice["headers"],
    )
    assert r.status_code == 404
    assert r.json()["error"] == "Assigned user not found"

    r2 = client.post(
        "/api/tasks/",
        json={"title": "Ghost", "description": "x", "assignee_id": alice["id"], "supervisor_id": 999},
        headers=alice["headers"],
    )
    assert r2.status_code == 404
    assert r2.json()["error"] == "Supervisor not found"


def test_tasks_require_auth(client):
    assert client.get("/api/tasks/").status_code == 401


def test_list_only_participating_tasks_with_total(client, alice, bob, carol):
    _create_task(client, alice, assignee=bob, supervisor=alice, title="A")
    _create_task(client, alice, assignee=bob, supervisor=alice, title="B", priority="high")
    _create_task(client, carol, assignee=carol, supervisor=carol, title="Carol only")

    r = client.get("/api/tasks/", headers=bob["headers"])
    assert r.status_code == 200
    titles = [t["title"] for t in r.json()]
    # Newest first, and Carol's private task is not visible
    assert titles == ["B", "A"]
    assert r.headers.get("X-Total-Count") == "2"

    high = client.get("/api/tasks/?priority=high&limit=1", headers=bob["headers"])
    assert [t["title"] for t in high.json()] == ["B"]
    assert high.headers.get("X-Total-Count") == "1"

    bad = client.get("/api/tasks/?priority=urgent", headers=bob["headers"])
    assert bad.status_code == 400


def test_get_task_by_participant_and_outsider(client, alice, bob, carol):
    task = _create_task(client, alice, assignee=bob, supervisor=alice)
    r = client.get(f"/api/tasks/{task['id']}", headers=bob["headers"])
    assert r.status_code == 200
    assert r.json()["id"] == task["id"]

    r_out = client.get(f"/api/tasks/{task['id']}", headers=carol["headers"])
    assert r_out.status_code == 403

    r_missing = client.get("/api/tasks/9999", headers=alice["headers"])
    assert r_missing.status_code == 404


def test_only_assignee_can_complete(client, alice, bob):
    task = _create_task(client, alice, assignee=bob, supervisor=alice)
    tid = task["id"]

    r_sup = client.patch(f"/api/tasks/{tid}", json={"status": "completed"}, headers=alice["headers"])
    assert r_sup.status_code == 403
    assert r_sup.json()["error"] == "Only the assignee can mark a task as completed"

    r = client.patch(f"/api/tasks/{tid}", json={"status": "completed"}, headers=bob["headers"])
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "completed"
    assert data["completed_at"] is not None
    # Other fields should be preserved
    assert data["title"] == task["title"]


def test_only_supervisor_can_review(client, alice, bob):
    task = _create_task(client, alice, assignee=bob, supervisor=alice)
    tid = task["id"]

    r_asg = client.patch(f"/api/tasks/{tid}", json={"status": "reviewed"}, headers=bob["headers"])
    assert r_asg.status_code == 403
    assert r_asg.json()["error"] == "Only the supervisor can mark a task as reviewed"

    r = client.patch(f"/api/tasks/{tid}", json={"status": "reviewed"}, headers=alice["headers"])
    assert r.status_code == 200
    assert r.json()["status"] == "reviewed"


def test_outsider_cannot_update(client, alice, bob, carol):
    task = _create_task(client, alice, assignee=bob, supervisor=alice)
    r = client.patch(f"/api/tasks/{task['id']}", json={"title": "Hijacked"}, headers=carol["headers"])
    assert r.status_code == 403


def test_owner_who_is_neither_role_cannot_update(client, alice, bob, carol):
    task = _create_task(client, alice, assignee=bob, supervisor=carol)
    r = client.patch(f"/api/tasks/{task['id']}", json={"priority": "low"}, headers=alice["headers"])
    assert r.status_code == 403


def test_assignee_can_edit_progress_fields(client, alice, bob):
    task = _create_task(client, alice, assignee=bob, supervisor=alice)
    r = client.patch(
        f"/api/tasks/{task['id']}",
        json={"status": "in_progress", "priority": "high"},
        headers=bob["headers"],
    )
    assert r.status_code == 200
    assert r.json()["status"] == "in_progress"
    assert r.json()["priority"] == "high"


def test_invalid_status_value_is_400(client, alice, bob):
    task = _create_task(client, alice, assignee=bob, supervisor=alice)
    r = client.patch(f"/api/tasks/{task['id']}", json={"status": "done"}, headers=bob["headers"])
    assert r.status_code == 400


def test_reassign_only_by_supervisor(client, alice, bob, carol):
    task = _create_task(client, alice, assignee=bob, supervisor=alice)
    tid = task["id"]

    r_asg = client.patch(f"/api/tasks/{tid}", json={"assignee_id": carol["id"]}, headers=bob["headers"])
    assert r_asg.status_code == 403

    r_missing = client.patch(f"/api/tasks/{tid}", json={"assignee_id": 999}, headers=alice["headers"])
    assert r_missing.status_code == 404

    r = client.patch(f"/api/tasks/{tid}", json={"assignee_id": carol["id"]}, headers=alice["headers"])
    assert r.status_code == 200
    assert r.json()["assignee"]["id"] == carol["id"]


def test_only_supervisor_can_delete(client, alice, bob):
    task = _create_task(client, alice, assignee=bob, supervisor=alice)
    tid = task["id"]

    r_asg = client.delete(f"/api/tasks/{tid}", headers=bob["headers"])
    assert r_asg.status_code == 403
    assert r_asg.json()["error"] == "Only the supervisor can delete tasks"

    # Delete should return 204
    r = client.delete(f"/api/tasks/{tid}", headers=alice["headers"])
    assert r.status_code == 204

    # Further GET should be 404
    r2 = client.get(f"/api/tasks/{tid}", headers=alice["headers"])
    assert r2.status_code == 404


def test_delete_missing_task_404(client, alice):
    assert client.delete("/api/tasks/12345", headers=alice["headers"]).status_code == 404


def test_comments(client, alice, bob, carol):
    task = _create_task(client, alice, assignee=bob, supervisor=alice)
    tid = task["id"]

    r = client.post(f"/api/tasks/{tid}/comments", json={"content": "On it"}, headers=bob["headers"])
    assert r.status_code == 201
    r = client.post(f"/api/tasks/{tid}/comments", json={"content": "Thanks"}, headers=alice["headers"])
    comments = r.json()["comments"]
    assert [c["content"] for c in comments] == ["On it", "Thanks"]
    assert comments[0]["author"]["id"] == bob["id"]
    assert comments[1]["author"]["name"] == "Alice"

    r_out = client.post(f"/api/tasks/{tid}/comments", json={"content": "Hi"}, headers=carol["headers"])
    assert r_out.status_code == 403

    r_empty = client.post(f"/api/tasks/{tid}/comments", json={"content": "   "}, headers=bob["headers"])
    assert r_empty.status_code == 400

    r_missing = client.post("/api/tasks/9999/comments", json={"content": "x"}, headers=bob["headers"])
    assert r_missing.status_code == 404


def test_comments_are_removed_with_task(client, alice, bob):
    task = _create_task(client, alice, assignee=bob, supervisor=alice)
    tid = task["id"]
    client.post(f"/api/tasks/{tid}/comments", json={"content": "note"}, headers=bob["headers"])
    assert client.delete(f"/api/tasks/{tid}", headers=alice["headers"]).status_code == 204
    assert client.get("/api/tasks/", headers=alice["headers"]).json() == []
