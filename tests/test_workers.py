from __future__ import annotations

from fastapi.testclient import TestClient


def _create_project(client: TestClient, headers: dict[str, str]) -> str:
    client_id = client.post("/api/v1/clients", headers=headers, json={"name": "Acme"}).json()["id"]
    response = client.post("/api/v1/projects", headers=headers, json={"name": "Website", "client_id": client_id})
    assert response.status_code == 201
    return response.json()["id"]


def _create_worker(client: TestClient, headers: dict[str, str], name: str, rate: str) -> str:
    response = client.post(
        "/api/v1/workers",
        headers=headers,
        json={"name": name, "email": f"{name.lower()}@team.test", "hourly_rate": rate},
    )
    assert response.status_code == 201
    assert response.json()["total_earned"] == "0.00"
    return response.json()["id"]


def _worker(client: TestClient, headers: dict[str, str], worker_id: str) -> dict:
    response = client.get(f"/api/v1/workers/{worker_id}", headers=headers)
    assert response.status_code == 200
    return response.json()


def test_worker_rollups_follow_tasks_and_payments(client: TestClient, headers: dict[str, str]) -> None:
    project_id = _create_project(client, headers)
    alice = _create_worker(client, headers, "Alice", "50")
    bob = _create_worker(client, headers, "Bob", "30")

    task = client.post(
        "/api/v1/tasks",
        headers=headers,
        json={"project_id": project_id, "title": "Build", "estimated_hours": "4", "assigned_worker_id": alice},
    ).json()
    assert _worker(client, headers, alice)["total_earned"] == "200.00"

    payout = client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "120", "type": "OUTGOING", "status": "PAID", "worker_id": alice},
    )
    assert payout.status_code == 201
    assert payout.json()["target"] == "worker"
    assert _worker(client, headers, alice)["total_paid"] == "120.00"

    reassigned = client.patch(f"/api/v1/tasks/{task['id']}", headers=headers, json={"assigned_worker_id": bob})
    assert reassigned.status_code == 200
    assert _worker(client, headers, alice)["total_earned"] == "0.00"
    assert _worker(client, headers, bob)["total_earned"] == "200.00"

    unassigned = client.patch(f"/api/v1/tasks/{task['id']}", headers=headers, json={"assigned_worker_id": None})
    assert unassigned.json()["assigned_worker_id"] is None
    assert _worker(client, headers, bob)["total_earned"] == "0.00"


def test_worker_detail_lists_tasks_and_payments(client: TestClient, headers: dict[str, str]) -> None:
    project_id = _create_project(client, headers)
    worker_id = _create_worker(client, headers, "Carol", "40")
    client.post(
        "/api/v1/tasks",
        headers=headers,
        json={"project_id": project_id, "title": "Audit", "estimated_hours": "1", "assigned_worker_id": worker_id},
    )

    detail = _worker(client, headers, worker_id)

    assert detail["task_count"] == 1
    assert detail["tasks"][0]["project_name"] == "Website"
    assert detail["payments"] == []


def test_worker_with_tasks_cannot_be_deleted(client: TestClient, headers: dict[str, str]) -> None:
    project_id = _create_project(client, headers)
    busy = _create_worker(client, headers, "Busy", "10")
    idle = _create_worker(client, headers, "Idle", "10")
    client.post(
        "/api/v1/tasks",
        headers=headers,
        json={"project_id": project_id, "title": "Work", "assigned_worker_id": busy},
    )

    blocked = client.delete(f"/api/v1/workers/{busy}", headers=headers)
    assert blocked.status_code == 400
    assert blocked.json() == {"error": "Cannot delete worker with existing tasks or payments"}
    assert client.get(f"/api/v1/workers/{busy}", headers=headers).status_code == 200

    assert client.delete(f"/api/v1/workers/{idle}", headers=headers).status_code == 204


def test_worker_stats(client: TestClient, headers: dict[str, str]) -> None:
    _create_worker(client, headers, "Dana", "40")
    inactive = _create_worker(client, headers, "Eve", "60")
    client.patch(f"/api/v1/workers/{inactive}", headers=headers, json={"status": "INACTIVE"})
    client.post("/api/v1/payments", headers=headers, json={"amount": "25", "type": "OUTGOING", "worker_id": inactive})

    stats = client.get("/api/v1/workers/stats", headers=headers).json()

    assert stats["total_workers"] == 2
    assert stats["active_workers"] == 1
    assert stats["pending_payments"] == "25.00"
    assert stats["average_rate"] == "50.00"


def test_worker_with_only_payments_cannot_be_deleted(client: TestClient, headers: dict[str, str]) -> None:
    worker_id = _create_worker(client, headers, "Frank", "20")
    client.post("/api/v1/payments", headers=headers, json={"amount": "30", "type": "OUTGOING", "worker_id": worker_id})

    blocked = client.delete(f"/api/v1/workers/{worker_id}", headers=headers)

    assert blocked.status_code == 400
    assert blocked.json() == {"error": "Cannot delete worker with existing tasks or payments"}
    assert client.get(f"/api/v1/workers/{worker_id}", headers=headers).status_code == 200
