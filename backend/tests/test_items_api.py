import base64

from mobile_api.core.database import SessionLocal
from mobile_api.core.exceptions import StorageError
from mobile_api.api.deps import get_storage
from mobile_api.main import app
from mobile_api.models.item import Item, Upload
from mobile_api.services.storage_service import InMemoryStorageClient

from conftest import auth_header


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def _create_item(client, token, **body):
    body.setdefault("name", "item")
    response = client.post("/api/items", json=body, headers=auth_header(token))
    assert response.status_code == 201, response.text
    return response.json()["item"]


def test_create_item_defaults_and_validation(client, signup):
    token = signup()["token"]

    item = _create_item(client, token, name="Widget", description="A widget")
    assert item["name"] == "Widget"
    assert item["metadata"] == {}

    response = client.post("/api/items", json={"description": "nameless"}, headers=auth_header(token))
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Name is required", "code": "MISSING_NAME"}

    response = client.post("/api/items", json={"name": "x"})
    assert response.status_code == 401
    assert response.json()["code"] == "NO_TOKEN"


def test_cross_user_access_is_forbidden(client, signup):
    user_a = signup("a@example.com")["token"]
    user_b = signup("b@example.com")["token"]
    item = _create_item(client, user_a, name="private")

    for method, path, body in [
        ("GET", f"/api/items/{item['id']}", None),
        ("PUT", f"/api/items/{item['id']}", {"name": "stolen"}),
        ("DELETE", f"/api/items/{item['id']}", None),
        ("POST", f"/api/items/{item['id']}/upload", {"filename": "x.txt", "content": _b64(b"x")}),
        ("GET", f"/api/items/{item['id']}/uploads", None),
    ]:
        response = client.request(method, path, json=body, headers=auth_header(user_b))
        assert response.status_code == 403, (method, path)
        assert response.json()["code"] == "FORBIDDEN"

    anonymous = client.get(f"/api/items/{item['id']}")
    assert anonymous.status_code == 403

    # The owner still sees the untouched item.
    owned = client.get(f"/api/items/{item['id']}", headers=auth_header(user_a))
    assert owned.status_code == 200
    assert owned.json()["item"]["name"] == "private"


def test_missing_item_is_404(client, signup):
    token = signup()["token"]
    response = client.get("/api/items/9999", headers=auth_header(token))
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Item not found", "code": "NOT_FOUND"}


def test_anonymous_listing_shows_capped_public_items(client, signup):
    token = signup()["token"]
    _create_item(client, token, name="owned")
    session = SessionLocal()
    try:
        session.add_all([Item(name=f"public {i}", metadata_={}) for i in range(12)])
        session.commit()
    finally:
        session.close()

    anonymous = client.get("/api/items")
    assert anonymous.status_code == 200
    body = anonymous.json()
    assert body["count"] == 10
    assert all(item["user_id"] is None for item in body["items"])

    mine = client.get("/api/items", headers=auth_header(token)).json()
    assert [item["name"] for item in mine["items"]] == ["owned"]

    # A public item is readable by anyone.
    public_id = body["items"][0]["id"]
    assert client.get(f"/api/items/{public_id}").status_code == 200


def test_partial_update_touches_only_present_fields(client, signup):
    token = signup()["token"]
    item = _create_item(client, token, name="before", description="keep me", metadata={"color": "red"})

    response = client.put(f"/api/items/{item['id']}", json={"name": "after"}, headers=auth_header(token))
    assert response.status_code == 200
    updated = response.json()["item"]
    assert updated["name"] == "after"
    assert updated["description"] == "keep me"
    assert updated["metadata"] == {"color": "red"}

    response = client.put(f"/api/items/{item['id']}", json={"metadata": {"size": 3}}, headers=auth_header(token))
    assert response.json()["item"]["metadata"] == {"size": 3}
    assert response.json()["item"]["name"] == "after"

    response = client.put(f"/api/items/{item['id']}", json={}, headers=auth_header(token))
    assert response.status_code == 400
    assert response.json()["code"] == "NO_UPDATES"


def test_upload_and_list_uploads(client, signup, storage):
    token = signup()["token"]
    item = _create_item(client, token)

    response = client.post(
        f"/api/items/{item['id']}/upload",
        json={"filename": "photo.png", "content": _b64(b"\x89PNG data"), "content_type": "image/png"},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    upload = response.json()["upload"]
    assert upload["file_size"] == len(b"\x89PNG data")
    assert upload["content_type"] == "image/png"

    (key,) = storage.stored_objects
    assert key.startswith(f"items/{item['id']}/")
    assert key.endswith("-photo.png")
    assert storage.stored_objects[key] == b"\x89PNG data"
    assert storage.key_from_url(upload["file_url"]) == key

    listing = client.get(f"/api/items/{item['id']}/uploads", headers=auth_header(token)).json()
    assert listing["count"] == 1
    assert listing["uploads"][0]["filename"] == "photo.png"


def test_upload_validation(client, signup, storage):
    token = signup()["token"]
    item = _create_item(client, token)
    path = f"/api/items/{item['id']}/upload"

    response = client.post(path, json={"filename": "a.txt"}, headers=auth_header(token))
    assert response.status_code == 400
    assert response.json()["code"] == "MISSING_FIELDS"

    response = client.post(path, json={"filename": "a.txt", "content": "%%% not base64"}, headers=auth_header(token))
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_CONTENT"
    assert storage.stored_objects == {}


def test_upload_accepts_line_wrapped_base64(client, signup, storage):
    token = signup()["token"]
    item = _create_item(client, token)

    response = client.post(
        f"/api/items/{item['id']}/upload",
        json={"filename": "hello.txt", "content": "aGVs\nbG8=\n"},
        headers=auth_header(token),
    )

    assert response.status_code == 200
    assert response.json()["upload"]["file_size"] == 5
    assert list(storage.stored_objects.values()) == [b"hello"]


class _FailingStorage(InMemoryStorageClient):
    def upload(self, key, body, content_type="application/octet-stream"):
        raise StorageError("Upload failed: bucket unavailable")

    def delete(self, key):
        raise StorageError("Delete failed: bucket unavailable")


def test_upload_failure_aborts_without_record(client, signup):
    token = signup()["token"]
    item = _create_item(client, token)
    app.dependency_overrides[get_storage] = lambda: _FailingStorage()

    response = client.post(
        f"/api/items/{item['id']}/upload",
        json={"filename": "a.txt", "content": _b64(b"abc")},
        headers=auth_header(token),
    )

    assert response.status_code == 502
    assert response.json()["code"] == "STORAGE_ERROR"
    session = SessionLocal()
    try:
        assert session.query(Upload).count() == 0
    finally:
        session.close()


def test_delete_item_purges_blobs_then_rows(client, signup, storage):
    token = signup()["token"]
    item = _create_item(client, token)
    for name in ("a.txt", "b.txt"):
        client.post(
            f"/api/items/{item['id']}/upload",
            json={"filename": name, "content": _b64(name.encode())},
            headers=auth_header(token),
        )
    assert len(storage.stored_objects) == 2

    response = client.delete(f"/api/items/{item['id']}", headers=auth_header(token))

    assert response.status_code == 200
    assert storage.stored_objects == {}
    assert client.get(f"/api/items/{item['id']}", headers=auth_header(token)).status_code == 404


def test_delete_item_tolerates_storage_failures(client, signup, storage):
    token = signup()["token"]
    item = _create_item(client, token)
    client.post(
        f"/api/items/{item['id']}/upload",
        json={"filename": "a.txt", "content": _b64(b"abc")},
        headers=auth_header(token),
    )
    app.dependency_overrides[get_storage] = lambda: _FailingStorage()

    response = client.delete(f"/api/items/{item['id']}", headers=auth_header(token))

    assert response.status_code == 200
    session = SessionLocal()
    try:
        assert session.query(Item).count() == 0
        assert session.query(Upload).count() == 0
    finally:
        session.close()


def test_cross_user_delete_scenario(client, signup):
    user_a = signup("a@example.com")
    user_b = signup("b@example.com")
    item = _create_item(client, user_a["token"], name="A's item")

    forbidden = client.delete(f"/api/items/{item['id']}", headers=auth_header(user_b["token"]))
    assert forbidden.status_code == 403
    assert client.get(f"/api/items/{item['id']}", headers=auth_header(user_a["token"])).status_code == 200

    deleted = client.delete(f"/api/items/{item['id']}", headers=auth_header(user_a["token"]))
    assert deleted.status_code == 200
    assert client.get(f"/api/items/{item['id']}", headers=auth_header(user_a["token"])).status_code == 404
