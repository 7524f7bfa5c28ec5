from fastapi.testclient import TestClient

from parkops.main import build_app
from parkops.schemas.mission import MissionCreate
from parkops.services.lifecycle import create_mission


def _create(client, auth_headers, body):
    return client.post("/missions", json=body, headers=auth_headers)


def test_requires_authentication(client, worker):
    assert client.get("/missions").status_code == 401
    res = client.get("/missions", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json() == {"error": "Invalid or expired token"}


# ----------------------------------------------------------------------
# Create
# ----------------------------------------------------------------------
def test_create_normalizes_leaves_and_notifies_assignee(client, auth_headers, mission_body, notifier, worker):
    res = _create(client, auth_headers, mission_body)
    assert res.status_code == 201
    body = res.json()

    assert body["missionId"] == "M-1"
    assert body["status"] == "unopened"
    assert body["assignedTo"] == {"id": worker.id, "username": "worker1"}
    assert body["comment"] == ""
    assert body["openedAt"] is None
    assert body["payload"]["collect"]["notes"] == {"amount": 500, "completed": False}
    assert body["payload"]["maintenance"][0] == {"task": "Clean screen", "completed": False}
    assert body["payload"]["maintenance"][1]["task"] == {"en": "Check printer", "fr": "Vérifier l'imprimante"}

    assert len(notifier.calls) == 1
    payload, username = notifier.calls[0]
    assert username == "worker1"
    assert payload["machineName"] == "Machine A1"


def test_create_duplicate_id_conflicts(client, auth_headers, mission_body):
    assert _create(client, auth_headers, mission_body).status_code == 201
    mission_body["maintenance"] = ["something else"]
    res = _create(client, auth_headers, mission_body)
    assert res.status_code == 409
    assert res.json() == {"error": "Mission with this ID already exists"}


def test_create_validation_errors(client, auth_headers, mission_body):
    no_id = {k: v for k, v in mission_body.items() if k != "id"}
    assert _create(client, auth_headers, no_id).json() == {"error": "Mission ID is required in payload"}

    no_user = {k: v for k, v in mission_body.items() if k != "username"}
    res = _create(client, auth_headers, no_user)
    assert res.status_code == 400
    assert res.json() == {"error": "Username is required to assign mission"}

    no_tasks = {k: v for k, v in mission_body.items() if k not in ("collect", "maintenance")}
    assert _create(client, auth_headers, no_tasks).status_code == 400


def test_create_rejects_overlong_id_and_date(client, auth_headers, mission_body):
    res = _create(client, auth_headers, {**mission_body, "id": "M" * 129})
    assert res.status_code == 400
    assert res.json()["error"].startswith("Invalid request: id:")

    res = _create(client, auth_headers, {**mission_body, "date": "2025-11-26" * 4})
    assert res.status_code == 400
    assert res.json()["error"].startswith("Invalid request: date:")

    assert client.get("/missions", headers=auth_headers).json() == []


def test_create_rejects_empty_task_group(client, auth_headers, mission_body, notifier):
    body = {k: v for k, v in mission_body.items() if k not in ("collect", "maintenance")}
    res = _create(client, auth_headers, {**body, "collect": {}})
    assert res.status_code == 400
    assert res.json() == {"error": "At least one of collect, refill or maintenance is required"}
    assert notifier.calls == []


def test_create_unknown_user(client, auth_headers, mission_body):
    mission_body["username"] = "ghost"
    res = _create(client, auth_headers, mission_body)
    assert res.status_code == 404
    assert res.json() == {"error": "User 'ghost' not found"}


def test_create_succeeds_when_notification_fails(app, client, auth_headers, mission_body, notifier):
    notifier.fail = True
    res = _create(client, auth_headers, mission_body)
    assert res.status_code == 201
    assert client.get("/missions/M-1", headers=auth_headers).status_code == 200


# ----------------------------------------------------------------------
# Open
# ----------------------------------------------------------------------
def test_open_then_reopen_is_rejected(client, auth_headers, mission_body):
    _create(client, auth_headers, mission_body)

    res = client.post("/missions/M-1/open", headers=auth_headers)
    assert res.status_code == 200
    opened = res.json()
    assert opened["status"] == "in_progress"
    assert opened["openedAt"] is not None
    assert opened["openedBy"]["username"] == "worker1"

    res = client.post("/missions/M-1/open", headers=auth_headers)
    assert res.status_code == 409
    assert res.json() == {"error": "Mission is not in unopened status", "currentStatus": "in_progress"}

    after = client.get("/missions/M-1", headers=auth_headers).json()
    assert after["openedAt"] == opened["openedAt"]


def test_open_unknown_mission(client, auth_headers):
    res = client.post("/missions/nope/open", headers=auth_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Mission not found"}


# ----------------------------------------------------------------------
# Update / derived status
# ----------------------------------------------------------------------
def _update(client, auth_headers, body, mission_id="M-1"):
    return client.post(f"/missions/{mission_id}/update", json=body, headers=auth_headers)


def test_status_follows_leaf_completion_and_can_regress(client, auth_headers, mission_body):
    mission_body.pop("maintenance")
    _create(client, auth_headers, mission_body)

    res = _update(client, auth_headers, {"collect": {"notes": {"completed": True}}})
    assert res.status_code == 200
    assert res.json()["status"] == "in_progress"
    assert res.json()["completedAt"] is None

    res = _update(client, auth_headers, {"collect": {"coins": {"completed": True}}})
    assert res.json()["status"] == "completed"
    assert res.json()["completedAt"] is not None

    res = _update(client, auth_headers, {"collect": {"notes": {"completed": False}}})
    assert res.json()["status"] == "in_progress"
    assert res.json()["completedAt"] is None


def test_maintenance_index_out_of_range_is_ignored(client, auth_headers, mission_body):
    mission_body.pop("collect")
    _create(client, auth_headers, mission_body)

    res = _update(client, auth_headers, {"maintenance": [{"index": 99, "completed": True}]})
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "unopened"
    assert [m["completed"] for m in body["payload"]["maintenance"]] == [False, False]


def test_maintenance_updates_complete_mission(client, auth_headers, mission_body):
    mission_body.pop("collect")
    _create(client, auth_headers, mission_body)

    res = _update(client, auth_headers, {"maintenance": [
        {"index": 0, "completed": True},
        {"index": 1, "completed": True},
    ]})
    assert res.json()["status"] == "completed"


def test_comment_replaces_previous_value(client, auth_headers, mission_body):
    _create(client, auth_headers, mission_body)
    _update(client, auth_headers, {"comment": "screen cracked"})
    res = _update(client, auth_headers, {"comment": "replaced"})
    assert res.json()["comment"] == "replaced"
    assert res.json()["status"] == "unopened"


def test_update_rejects_client_supplied_status(client, auth_headers, mission_body):
    _create(client, auth_headers, mission_body)
    res = _update(client, auth_headers, {"status": "completed"})
    assert res.status_code == 400
    assert "status" in res.json()["error"]
    assert client.get("/missions/M-1", headers=auth_headers).json()["status"] == "unopened"


def test_update_unknown_mission(client, auth_headers):
    assert _update(client, auth_headers, {"comment": "x"}, mission_id="nope").status_code == 404


# ----------------------------------------------------------------------
# Listing
# ----------------------------------------------------------------------
def test_list_orders_unopened_first_then_date_desc(client, auth_headers, mission_body):
    for mission_id, day in (("A", "2025-11-01"), ("B", "2025-11-03"), ("C", "2025-11-02")):
        _create(client, auth_headers, {**mission_body, "id": mission_id, "date": day})
    client.post("/missions/B/open", headers=auth_headers)

    res = client.get("/missions", headers=auth_headers)
    assert [m["missionId"] for m in res.json()] == ["C", "A", "B"]

    res = client.get("/missions", params={"status": "in_progress"}, headers=auth_headers)
    assert [m["missionId"] for m in res.json()] == ["B"]

    assert client.get("/missions", params={"status": "bogus"}, headers=auth_headers).status_code == 400


def test_assigned_missions_pagination(client, auth_headers, db, make_user):
    make_user("other")
    for i in range(25):
        create_mission(db, MissionCreate.model_validate({
            "id": f"M-{i:02d}", "username": "worker1", "maintenance": ["x"],
        }))
    create_mission(db, MissionCreate.model_validate({"id": "X-1", "username": "other", "maintenance": ["x"]}))

    res = client.get("/missions/assigned", params={"page": 3, "limit": 10}, headers=auth_headers)
    assert res.status_code == 200
    body = res.json()
    assert len(body["missions"]) == 5
    assert body["pagination"] == {
        "total": 25,
        "page": 3,
        "limit": 10,
        "totalPages": 3,
        "hasNextPage": False,
        "hasPrevPage": True,
    }

    first = client.get("/missions/assigned", params={"page": 1, "limit": 10}, headers=auth_headers).json()
    assert first["missions"][0]["missionId"] == "M-24"


def test_assigned_missions_rejects_bad_page(client, auth_headers):
    res = client.get("/missions/assigned", params={"page": 0, "limit": 10}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json() == {"error": "Page and limit must be positive integers"}


def test_health(client):
    assert client.get("/health").json() == {"ok": True, "status": "ok"}


def test_shutdown_closes_own_push_client_only(notifier):
    app = build_app()
    with TestClient(app):
        assert not app.state.notifier._client.is_closed
    assert app.state.notifier._client.is_closed

    injected = build_app(notifier=notifier)
    with TestClient(injected):
        pass
    assert injected.state.notifier is notifier
