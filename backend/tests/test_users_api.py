import base64

from mobile_api.core.database import SessionLocal
from mobile_api.models.item import Item, Upload
from mobile_api.models.user import User

from conftest import auth_header, count_sessions


def _password_hash(user_id):
    session = SessionLocal()
    try:
        return session.get(User, user_id).password_hash
    finally:
        session.close()


def test_change_password_wrong_current_keeps_hash(client, signup):
    created = signup("erin@example.com", "password123")
    headers = auth_header(created["token"])
    before = _password_hash(created["user"]["id"])

    response = client.put(
        "/api/users/me/password",
        json={"current_password": "wrong-password", "new_password": "newpassword456"},
        headers=headers,
    )

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_PASSWORD"
    assert _password_hash(created["user"]["id"]) == before


def test_change_password_then_login_with_new_only(client, signup):
    created = signup("erin@example.com", "password123")
    headers = auth_header(created["token"])

    response = client.put(
        "/api/users/me/password",
        json={"current_password": "password123", "new_password": "newpassword456"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["success"] is True

    old = client.post("/api/auth/login", json={"email": "erin@example.com", "password": "password123"})
    assert old.status_code == 401
    new = client.post("/api/auth/login", json={"email": "erin@example.com", "password": "newpassword456"})
    assert new.status_code == 200


def test_change_password_rejects_weak_new_password(client, signup):
    created = signup()
    response = client.put(
        "/api/users/me/password",
        json={"current_password": "password123", "new_password": "short"},
        headers=auth_header(created["token"]),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "WEAK_PASSWORD"


def test_profile_partial_update(client, signup):
    created = signup(name="Alice")
    headers = auth_header(created["token"])

    response = client.put("/api/users/me", json={"avatar_url": "https://cdn.example.com/a.png"}, headers=headers)
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["avatar_url"] == "https://cdn.example.com/a.png"
    assert user["name"] == "Alice"

    response = client.put("/api/users/me", json={}, headers=headers)
    assert response.status_code == 400
    assert response.json()["code"] == "NO_UPDATES"


def test_my_items_lists_only_own_items(client, signup):
    alice = signup("alice@example.com")
    bob = signup("bob@example.com")
    client.post("/api/items", json={"name": "alice item"}, headers=auth_header(alice["token"]))
    client.post("/api/items", json={"name": "bob item"}, headers=auth_header(bob["token"]))

    response = client.get("/api/users/me/items", headers=auth_header(alice["token"]))

    assert response.status_code == 200
    assert response.json()["count"] == 1
    assert response.json()["items"][0]["name"] == "alice item"


def test_delete_account_requires_password(client, signup):
    created = signup()
    headers = auth_header(created["token"])

    response = client.request("DELETE", "/api/users/me", headers=headers)
    assert response.status_code == 400
    assert response.json()["code"] == "MISSING_PASSWORD"

    response = client.request("DELETE", "/api/users/me", json={"password": "wrong-password"}, headers=headers)
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_PASSWORD"


def test_delete_account_cascades_and_purges_blobs(client, signup, storage):
    created = signup()
    user_id = created["user"]["id"]
    headers = auth_header(created["token"])

    item = client.post("/api/items", json={"name": "with file"}, headers=headers).json()["item"]
    client.post(
        f"/api/items/{item['id']}/upload",
        json={"filename": "a.txt", "content": base64.b64encode(b"hello").decode(), "contentType": "text/plain"},
        headers=headers,
    )
    assert len(storage.stored_objects) == 1

    response = client.request("DELETE", "/api/users/me", json={"password": "password123"}, headers=headers)

    assert response.status_code == 200
    assert storage.stored_objects == {}
    assert count_sessions(user_id) == 0
    session = SessionLocal()
    try:
        assert session.get(User, user_id) is None
        assert session.query(Item).count() == 0
        assert session.query(Upload).count() == 0
    finally:
        session.close()

    after = client.get("/api/users/me", headers=headers)
    assert after.status_code == 401
    assert after.json()["code"] == "SESSION_EXPIRED"
