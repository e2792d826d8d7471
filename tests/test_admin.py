import anyio
from fastapi.testclient import TestClient

from app.main import app
from app.services.store import repo
from app.services.store.init_db import promote_admin


def test_admin_routes_require_token(client):
    assert client.get("/api/admin/users").status_code == 401
    assert client.get("/api/admin/stats").status_code == 401


def test_admin_routes_reject_regular_users(client, user_headers):
    for path in ("/api/admin/users", "/api/admin/stats"):
        res = client.get(path, headers=user_headers)
        assert res.status_code == 403
        assert res.json() == {"message": "Not authorized as an admin"}


def test_admin_lists_users_without_password_hashes(client, user_headers, admin_headers):
    res = client.get("/api/admin/users", headers=admin_headers)
    assert res.status_code == 200
    users = res.json()

    assert {u["email"] for u in users} == {"alice@example.com", "admin@example.com"}
    roles = {u["email"]: u["role"] for u in users}
    assert roles["admin@example.com"] == "admin"
    for u in users:
        assert set(u) == {"_id", "name", "email", "role", "createdAt"}


def test_admin_stats_counts(client, user_headers, other_headers, admin_headers):
    client.post("/api/chat", json={"message": "one"}, headers=user_headers)
    client.post("/api/chat", json={"message": "two"}, headers=user_headers)
    client.post("/api/chat", json={"message": "three"}, headers=other_headers)

    res = client.get("/api/admin/stats", headers=admin_headers)
    assert res.status_code == 200
    assert res.json() == {"users": 3, "chats": 3, "messages": 6}


def test_promote_unknown_user(engine):
    assert anyio.run(promote_admin, "ghost@example.com", engine) is False


def test_stats_failure_is_json_500(client, admin_headers, monkeypatch):
    async def broken(db, model):
        raise RuntimeError("count failed")

    monkeypatch.setattr(repo, "count_rows", broken)
    crashing = TestClient(app, raise_server_exceptions=False)

    res = crashing.get("/api/admin/stats", headers=admin_headers)
    assert res.status_code == 500
    assert res.json() == {"message": "Server Error"}
