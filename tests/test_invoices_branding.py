from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from freelancehub.core.config import get_settings


@pytest.fixture()
def settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _create_client(client: TestClient, headers: dict[str, str], name: str = "Acme") -> str:
    response = client.post(
        "/api/v1/clients",
        headers=headers,
        json={"name": name, "email": "ap@acme.test", "address": "1 Main St"},
    )
    assert response.status_code == 201
    return response.json()["id"]


def _create_project(client: TestClient, headers: dict[str, str], client_id: str, name: str, **extra: object) -> str:
    response = client.post("/api/v1/projects", headers=headers, json={"name": name, "client_id": client_id, **extra})
    assert response.status_code == 201
    return response.json()["id"]


def test_invoice_lines_and_totals(client: TestClient, headers: dict[str, str]) -> None:
    client_id = _create_client(client, headers)
    costed = _create_project(client, headers, client_id, "Website")
    budgeted = _create_project(client, headers, client_id, "Retainer", budget="400")
    client.post(
        "/api/v1/tasks",
        headers=headers,
        json={
            "project_id": costed,
            "title": "Build",
            "status": "COMPLETED",
            "hourly_rate": "50",
            "estimated_hours": "10",
            "actual_hours": "4",
        },
    )
    client.post(
        "/api/v1/tasks",
        headers=headers,
        json={"project_id": costed, "title": "Planned", "hourly_rate": "50", "estimated_hours": "2"},
    )
    client.post(
        "/api/v1/payments",
        headers=headers,
        json={"amount": "100", "type": "INCOMING", "status": "PAID", "project_id": costed},
    )

    response = client.post(
        "/api/v1/invoices/generate",
        headers=headers,
        json={"project_ids": [costed, budgeted], "invoice_number": "INV-001", "due_date": "2026-12-01"},
    )

    assert response.status_code == 200
    invoice = response.json()
    project_lines = [line for line in invoice["line_items"] if line["type"] == "project"]
    task_lines = [line for line in invoice["line_items"] if line["type"] == "task"]
    assert sorted(line["amount"] for line in project_lines) == ["300.00", "400.00"]
    assert [line["description"] for line in task_lines] == ["Build"]
    assert task_lines[0]["quantity"] == "4.00"
    assert task_lines[0]["rate"] == "50.00"
    assert invoice["subtotal"] == "700.00"
    assert invoice["tax"] == "0.00"
    assert invoice["total"] == "700.00"
    assert invoice["outstanding"] == "600.00"
    assert invoice["client"]["name"] == "Acme"
    assert invoice["freelancer"]["name"] == "Owner"
    assert invoice["notes"] == "Invoice for 2 projects: Website, Retainer"
    assert invoice["payment_terms"] == "Payment is due within 30 days of invoice date."
    assert invoice["due_date"] == "2026-12-01"


def test_invoice_applies_configured_tax(
    client: TestClient,
    headers: dict[str, str],
    monkeypatch: pytest.MonkeyPatch,
    settings_cache: None,
) -> None:
    monkeypatch.setenv("INVOICE_TAX_RATE", "0.18")
    get_settings.cache_clear()
    client_id = _create_client(client, headers)
    project_id = _create_project(client, headers, client_id, "Website", budget="1000")

    invoice = client.post(
        "/api/v1/invoices/generate",
        headers=headers,
        json={"project_ids": [project_id], "invoice_number": "INV-002"},
    ).json()

    assert invoice["subtotal"] == "1000.00"
    assert invoice["tax"] == "180.00"
    assert invoice["total"] == "1180.00"
    assert invoice["notes"] == "Invoice for project: Website"


def test_invoice_rejects_mixed_clients_and_foreign_projects(client: TestClient, headers: dict[str, str]) -> None:
    first = _create_project(client, headers, _create_client(client, headers, "First"), "One")
    second = _create_project(client, headers, _create_client(client, headers, "Second"), "Two")
    unknown = "00000000-0000-0000-0000-000000000042"

    mixed = client.post(
        "/api/v1/invoices/generate",
        headers=headers,
        json={"project_ids": [first, second], "invoice_number": "INV-3"},
    )
    assert mixed.status_code == 400
    assert mixed.json()["error"] == "All projects must belong to the same client for a single invoice"

    partial = client.post(
        "/api/v1/invoices/generate",
        headers=headers,
        json={"project_ids": [first, unknown], "invoice_number": "INV-4"},
    )
    assert partial.status_code == 400

    none_found = client.post(
        "/api/v1/invoices/generate",
        headers=headers,
        json={"project_ids": [unknown], "invoice_number": "INV-5"},
    )
    assert none_found.status_code == 404

    empty = client.post("/api/v1/invoices/generate", headers=headers, json={"project_ids": [], "invoice_number": "X"})
    assert empty.status_code == 400


def test_invoice_templates_catalogue(client: TestClient) -> None:
    items = client.get("/api/v1/invoice-templates").json()["items"]

    assert [item["id"] for item in items] == ["modern", "classic", "minimal", "corporate", "creative"]
    assert [item["id"] for item in items if item["is_default"]] == ["modern"]


def test_branding_defaults_then_upsert(client: TestClient, headers: dict[str, str]) -> None:
    defaults = client.get("/api/v1/branding", headers=headers).json()
    assert defaults["id"] is None
    assert defaults["business_name"] == "Owner"
    assert defaults["footer_text"] == "Thank you for your business!"
    assert defaults["primary_color"] == "#3B82F6"

    saved = client.put(
        "/api/v1/branding",
        headers=headers,
        json={
            "business_name": "Studio",
            "website": "https://studio.test",
            "paypal_email": "",
            "default_template": "classic",
            "terms_conditions": "Net 15",
        },
    )
    assert saved.status_code == 200
    assert saved.json()["business_name"] == "Studio"
    assert saved.json()["paypal_email"] is None

    updated = client.put("/api/v1/branding", headers=headers, json={"business_name": "Studio 2"})
    assert updated.json()["id"] == saved.json()["id"]
    assert client.get("/api/v1/branding", headers=headers).json()["business_name"] == "Studio 2"

    bad = client.put("/api/v1/branding", headers=headers, json={"default_template": "neon"})
    assert bad.status_code == 400


def test_invoice_uses_branding_terms(client: TestClient, headers: dict[str, str]) -> None:
    client.put("/api/v1/branding", headers=headers, json={"business_name": "Studio", "terms_conditions": "Net 15"})
    project_id = _create_project(client, headers, _create_client(client, headers), "Website", budget="10")

    invoice = client.post(
        "/api/v1/invoices/generate",
        headers=headers,
        json={"project_ids": [project_id], "invoice_number": "INV-9", "notes": "Thanks"},
    ).json()

    assert invoice["payment_terms"] == "Net 15"
    assert invoice["freelancer"]["name"] == "Studio"
    assert invoice["notes"] == "Thanks"
