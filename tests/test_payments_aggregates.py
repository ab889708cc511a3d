from __future__ import annotations

from datetime import date, timedelta

from fastapi.testclient import TestClient


def _create_client(client: TestClient, headers: dict[str, str], name: str = "Acme") -> str:
    response = client.post("/api/v1/clients", headers=headers, json={"name": name})
    assert response.status_code == 201
    return response.json()["id"]


def _create_project(client: TestClient, headers: dict[str, str], client_id: str, name: str = "Website") -> str:
    response = client.post("/api/v1/projects", headers=headers, json={"name": name, "client_id": client_id})
    assert response.status_code == 201
    return response.json()["id"]


def _paid_amount(client: TestClient, headers: dict[str, str], project_id: str) -> str:
    return client.get(f"/api/v1/projects/{project_id}", headers=headers).json()["paid_amount"]


def test_paid_amount_tracks_payment_lifecycle(client: TestClient, headers: dict[str, str]) -> None:
    client_id = _create_client(client, headers)
    project_id = _create_project(client, headers, client_id)

    pending = client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "150", "type": "INCOMING", "client_id": client_id, "project_id": project_id},
    )
    assert pending.status_code == 201
    assert pending.json()["target"] == "client"
    assert pending.json()["project_name"] == "Website"
    assert _paid_amount(client, headers, project_id) == "0.00"

    paid = client.patch(f"/api/v1/payments/{pending.json()['id']}", headers=headers, json={"status": "PAID"})
    assert paid.status_code == 200
    assert paid.json()["paid_date"] == date.today().isoformat()
    assert _paid_amount(client, headers, project_id) == "150.00"

    bumped = client.patch(f"/api/v1/payments/{pending.json()['id']}", headers=headers, json={"amount": "175.50"})
    assert bumped.json()["amount"] == "175.50"
    assert _paid_amount(client, headers, project_id) == "175.50"

    assert client.delete(f"/api/v1/payments/{pending.json()['id']}", headers=headers).status_code == 204
    assert _paid_amount(client, headers, project_id) == "0.00"


def test_moving_payment_between_projects_updates_both(client: TestClient, headers: dict[str, str]) -> None:
    client_id = _create_client(client, headers)
    first = _create_project(client, headers, client_id, "First")
    second = _create_project(client, headers, client_id, "Second")

    payment = client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "90", "type": "INCOMING", "status": "PAID", "project_id": first},
    ).json()
    assert payment["target"] == "project"
    assert _paid_amount(client, headers, first) == "90.00"

    moved = client.patch(f"/api/v1/payments/{payment['id']}", headers=headers, json={"project_id": second})

    assert moved.status_code == 200
    assert _paid_amount(client, headers, first) == "0.00"
    assert _paid_amount(client, headers, second) == "90.00"


def test_payment_target_validation(client: TestClient, headers: dict[str, str]) -> None:
    client_id = _create_client(client, headers)
    other_client_id = _create_client(client, headers, "Other")
    project_id = _create_project(client, headers, other_client_id)
    worker_id = client.post("/api/v1/workers", headers=headers, json={"name": "Dev"}).json()["id"]

    both = client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "10", "type": "OUTGOING", "client_id": client_id, "worker_id": worker_id},
    )
    assert both.status_code == 400

    mismatched = client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "10", "type": "INCOMING", "client_id": client_id, "project_id": project_id},
    )
    assert mismatched.status_code == 400
    assert mismatched.json()["error"] == "Project does not belong to the selected client."

    missing = client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "10", "type": "INCOMING", "project_id": "00000000-0000-0000-0000-000000000009"},
    )
    assert missing.status_code == 404

    non_positive = client.post("/api/v1/payments", headers=headers, json={"amount": "0", "type": "INCOMING"})
    assert non_positive.status_code == 400

    unallocated = client.post("/api/v1/payments", headers=headers, json={"amount": "5", "type": "INCOMING"})
    assert unallocated.status_code == 201
    assert unallocated.json()["target"] is None


def test_payment_filters(client: TestClient, headers: dict[str, str]) -> None:
    client.post("/api/v1/payments", headers=headers, json={"amount": "5", "type": "INCOMING"})
    client.post("/api/v1/payments", headers=headers, json={"amount": "7", "type": "OUTGOING", "status": "PAID"})

    outgoing = client.get("/api/v1/payments", headers=headers, params={"type": "OUTGOING"}).json()["items"]
    pending = client.get("/api/v1/payments", headers=headers, params={"status": "PENDING"}).json()["items"]

    assert [item["amount"] for item in outgoing] == ["7.00"]
    assert [item["amount"] for item in pending] == ["5.00"]


def test_overdue_sweep_only_touches_past_due_pending_payments(client: TestClient, headers: dict[str, str]) -> None:
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    tomorrow = (date.today() + timedelta(days=1)).isoformat()

    late = client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "10", "type": "INCOMING", "due_date": yesterday},
    ).json()
    upcoming = client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "20", "type": "INCOMING", "due_date": tomorrow},
    ).json()
    settled = client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "30", "type": "INCOMING", "status": "PAID", "due_date": yesterday},
    ).json()
    stranger = {
        "X-AUTH-SUBJECT": "subject-stranger",
        "X-AUTH-EMAIL": "stranger@test.local",
        "X-AUTH-DISPLAY-NAME": "Stranger",
    }
    foreign = client.post(
        "/api/v1/payments",
        headers=stranger,
        json={"amount": "40", "type": "INCOMING", "due_date": yesterday},
    ).json()

    response = client.post("/api/v1/payments/update-status", headers=headers)

    assert response.status_code == 200
    assert response.json()["updated_count"] == 1

    def status_of(payment: dict, owner: dict[str, str]) -> str:
        return client.get(f"/api/v1/payments/{payment['id']}", headers=owner).json()["status"]

    assert status_of(late, headers) == "OVERDUE"
    assert status_of(upcoming, headers) == "PENDING"
    assert status_of(settled, headers) == "PAID"
    assert status_of(foreign, stranger) == "PENDING"


def test_cancelling_paid_payment_lowers_paid_amount(client: TestClient, headers: dict[str, str]) -> None:
    project_id = _create_project(client, headers, _create_client(client, headers))
    payment = client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "100", "type": "INCOMING", "status": "PAID", "project_id": project_id},
    ).json()
    assert _paid_amount(client, headers, project_id) == "100.00"

    cancelled = client.patch(f"/api/v1/payments/{payment['id']}", headers=headers, json={"status": "CANCELLED"})

    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"
    assert _paid_amount(client, headers, project_id) == "0.00"
