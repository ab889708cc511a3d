from __future__ import annotations

from datetime import date

from fastapi.testclient import TestClient


def _seed(client: TestClient, headers: dict[str, str]) -> str:
    client_id = client.post("/api/v1/clients", headers=headers, json={"name": "Acme"}).json()["id"]
    project_id = client.post(
        "/api/v1/projects",
        headers=headers,
        json={"name": "Website", "client_id": client_id},
    ).json()["id"]
    client.post(
        "/api/v1/tasks",
        headers=headers,
        json={"project_id": project_id, "title": "Todo", "hourly_rate": "10", "estimated_hours": "2"},
    )
    client.post(
        "/api/v1/tasks",
        headers=headers,
        json={
            "project_id": project_id,
            "title": "Done",
            "status": "COMPLETED",
            "hourly_rate": "10",
            "estimated_hours": "5",
        },
    )
    client.post(
        "/api/v1/tasks",
        headers=headers,
        json={"project_id": project_id, "title": "Late", "status": "REVIEW", "due_date": "2020-01-01"},
    )
    client.post("/api/v1/workers", headers=headers, json={"name": "Dev"})
    client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "300", "type": "INCOMING", "status": "PAID", "client_id": client_id},
    )
    client.post("/api/v1/payments", headers=headers, json={"amount": "120", "type": "INCOMING"})
    client.post("/api/v1/payments", headers=headers, json={"amount": "80", "type": "OUTGOING", "status": "PAID"})
    client.post("/api/v1/payments", headers=headers, json={"amount": "15", "type": "OUTGOING"})
    return project_id


def test_dashboard_stats(client: TestClient, headers: dict[str, str]) -> None:
    _seed(client, headers)

    stats = client.get("/api/v1/dashboard/stats", headers=headers).json()

    assert stats == {
        "active_clients": 1,
        "active_projects": 1,
        "pending_tasks": 1,
        "total_revenue": "300.00",
        "pending_payments": "120.00",
        "monthly_revenue": "300.00",
        "total_workers": 1,
        "completed_tasks_this_month": 1,
    }


def test_financial_chart_covers_last_six_months(client: TestClient, headers: dict[str, str]) -> None:
    _seed(client, headers)

    items = client.get("/api/v1/dashboard/chart", headers=headers).json()["items"]

    assert len(items) == 6
    assert items[-1]["month"] == date.today().strftime("%Y-%m")
    assert items[-1]["revenue"] == "300.00"
    assert items[-1]["expenses"] == "80.00"
    assert items[-1]["profit"] == "220.00"
    assert all(item["revenue"] == "0.00" for item in items[:-1])

    three = client.get("/api/v1/dashboard/chart", headers=headers, params={"months": 3}).json()["items"]
    assert len(three) == 3


def test_recent_activity_merges_newest_entries(client: TestClient, headers: dict[str, str]) -> None:
    _seed(client, headers)

    items = client.get("/api/v1/dashboard/activity", headers=headers).json()["items"]

    assert len(items) == 8
    kinds = {item["type"] for item in items}
    assert kinds == {"client", "project", "task", "payment"}
    assert sum(1 for item in items if item["type"] == "payment") == 3
    timestamps = [item["timestamp"] for item in items]
    assert timestamps == sorted(timestamps, reverse=True)
    payment_descriptions = [item["description"] for item in items if item["type"] == "payment"]
    assert any("received from" in text or "paid to" in text for text in payment_descriptions)


def test_payment_and_task_stats(client: TestClient, headers: dict[str, str]) -> None:
    _seed(client, headers)

    payments = client.get("/api/v1/payments/stats", headers=headers).json()
    tasks = client.get("/api/v1/tasks/stats", headers=headers).json()

    assert payments == {
        "total_incoming": "420.00",
        "total_outgoing": "95.00",
        "pending_incoming": "120.00",
        "pending_outgoing": "15.00",
        "paid_incoming": "300.00",
        "paid_outgoing": "80.00",
        "overdue_payments": 0,
        "net_profit": "220.00",
    }
    assert tasks == {
        "total_tasks": 3,
        "completed_tasks": 1,
        "pending_tasks": 2,
        "overdue_tasks": 1,
        "total_value": "70.00",
        "completed_value": "50.00",
    }
