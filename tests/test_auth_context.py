from __future__ import annotations

from fastapi.testclient import TestClient


def _headers(subject: str, email: str, display_name: str) -> dict[str, str]:
    return {
        "X-AUTH-SUBJECT": subject,
        "X-AUTH-EMAIL": email,
        "X-AUTH-DISPLAY-NAME": display_name,
    }


def test_missing_identity_headers_is_unauthorized(client: TestClient) -> None:
    for path in ("/api/v1/me", "/api/v1/clients", "/api/v1/dashboard/stats"):
        response = client.get(path)
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}


def test_me_upserts_account(client: TestClient) -> None:
    headers = _headers("subject-a", "A@Test.Local", "Account A")

    first = client.get("/api/v1/me", headers=headers)
    second = client.get("/api/v1/me", headers={**headers, "X-AUTH-DISPLAY-NAME": "Renamed"})

    assert first.status_code == 200
    assert first.json()["email"] == "a@test.local"
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["display_name"] == "Renamed"


def test_accounts_cannot_see_each_other(client: TestClient) -> None:
    owner = _headers("subject-owner", "owner@test.local", "Owner")
    stranger = _headers("subject-stranger", "stranger@test.local", "Stranger")

    created = client.post("/api/v1/clients", headers=owner, json={"name": "Private Client"})
    assert created.status_code == 201
    client_id = created.json()["id"]

    assert client.get(f"/api/v1/clients/{client_id}", headers=stranger).status_code == 404
    assert client.patch(f"/api/v1/clients/{client_id}", headers=stranger, json={"name": "x"}).status_code == 404
    assert client.delete(f"/api/v1/clients/{client_id}", headers=stranger).status_code == 404
    assert client.get("/api/v1/clients", headers=stranger).json()["items"] == []

    foreign_project = client.post(
        "/api/v1/projects",
        headers=stranger,
        json={"name": "Hijack", "client_id": client_id},
    )
    assert foreign_project.status_code == 404
