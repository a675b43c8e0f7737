"""End to end flows through the HTTP boundary against an in-memory store."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from supportdesk.core.config import Settings, get_settings
from supportdesk.main import create_app, install_services
from supportdesk.storage import MemoryStore

SECRET = "test-secret"


def _token(subject: str, role: str, organization_id: str | None = None) -> dict[str, str]:
    claims = {"sub": subject, "role": role}
    if organization_id:
        claims["org"] = organization_id
    return {"Authorization": f"Bearer {jwt.encode(claims, SECRET, algorithm='HS256')}"}


@pytest.fixture
def client():
    settings = Settings(jwt_secret=SECRET, default_password="changeme")
    app = create_app()
    install_services(app, MemoryStore(), settings)
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_conversion_flow(client):
    admin = _token("u-admin", "admin")

    org = client.post(
        "/api/organizations",
        json={"name": "Acme", "plan": "enterprise", "contactEmail": "it@acme.example.com"},
        headers=admin,
    ).json()
    client_user = client.post(
        "/api/users",
        json={"name": "alice acme", "email": "alice@acme.example.com", "role": "client", "organizationId": org["id"]},
        headers=admin,
    ).json()
    assert client_user["avatar"] == "AA"
    assert "passwordHash" not in client_user

    customer = _token(client_user["id"], "client", org["id"])
    ticket = client.post("/api/tickets", json={"title": "Bulk export", "priority": "high"}, headers=customer).json()
    assert ticket["organizationId"] == org["id"]
    assert ticket["status"] == "open"

    lead = _token("u-lead", "support-lead")
    conversion = client.post(
        f"/api/tickets/{ticket['id']}/convert",
        json={"proposedType": "feature", "reason": "Needs product work"},
        headers=lead,
    )
    assert conversion.status_code == 201
    request_id = conversion.json()["id"]

    pending = client.get("/api/approvals", headers=customer).json()
    assert [item["id"] for item in pending] == [request_id]

    first = client.put(f"/api/approvals/{request_id}", json={"side": "internal", "status": "approved"}, headers=lead)
    assert first.json()["status"] == "pending"
    second = client.put(
        f"/api/approvals/{request_id}", json={"side": "client", "status": "approved"}, headers=customer
    )
    assert second.json()["status"] == "approved"
    assert second.json()["effectApplied"] is True

    again = client.put(f"/api/approvals/{request_id}", json={"side": "client", "status": "rejected"}, headers=customer)
    assert again.status_code == 409

    detail = client.get(f"/api/tickets/{ticket['id']}", headers=customer).json()
    assert detail["category"] == "feature"
    assert detail["conversionRequest"]["status"] == "approved"

    stats = client.get("/api/dashboard/stats", headers=customer).json()
    assert stats["totalTickets"] == 1
    assert stats["pendingApprovals"] == 0

    activity_types = [item["type"] for item in client.get("/api/dashboard/activities", headers=admin).json()]
    assert "conversion-approved" in activity_types


def test_client_is_confined_to_its_organization(client):
    admin = _token("u-admin", "admin")
    org_a = client.post(
        "/api/organizations", json={"name": "A", "contactEmail": "a@a.example.com"}, headers=admin
    ).json()
    org_b = client.post(
        "/api/organizations", json={"name": "B", "contactEmail": "b@b.example.com"}, headers=admin
    ).json()
    foreign = client.post(
        "/api/tickets", json={"title": "B only", "organizationId": org_b["id"]}, headers=_token("u-staff", "support-staff")
    ).json()

    customer = _token("u-client-a", "client", org_a["id"])
    assert client.get("/api/tickets", headers=customer).json() == []
    assert client.get(f"/api/tickets/{foreign['id']}", headers=customer).status_code == 404
    assert client.get(f"/api/organizations/{org_b['id']}", headers=customer).status_code == 404
    assert client.post("/api/organizations", json={"name": "X", "contactEmail": "x@x.example.com"}, headers=customer).status_code == 403


def test_invalid_token_is_rejected(client):
    forged = {"Authorization": f"Bearer {jwt.encode({'sub': 'u-admin', 'role': 'admin'}, 'other', algorithm='HS256')}"}
    unknown_role = _token("u-1", "superuser")

    assert client.get("/api/tickets", headers=forged).status_code == 401
    assert client.get("/api/tickets", headers=unknown_role).status_code == 401
