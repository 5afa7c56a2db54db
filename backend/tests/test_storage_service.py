from urllib.parse import parse_qs, urlparse

import pytest

from mobile_api.core.exceptions import StorageNotConfiguredError
from mobile_api.services.storage_service import InMemoryStorageClient, SpacesStorageClient


def _spaces(bucket="media"):
    return SpacesStorageClient(
        bucket=bucket,
        region="us-east-1",
        endpoint="https://nyc3.digitaloceanspaces.com",
        access_key_id="key",
        secret_access_key="secret",
    )


def test_public_url_is_virtual_hosted_and_round_trips_key():
    client = _spaces()
    url = client.public_url("items/1/1700000000000-my photo.png")

    assert url == "https://media.nyc3.digitaloceanspaces.com/items/1/1700000000000-my%20photo.png"
    assert client.key_from_url(url) == "items/1/1700000000000-my photo.png"


def test_unconfigured_bucket_refuses_operations():
    client = _spaces(bucket="")
    with pytest.raises(StorageNotConfiguredError):
        client.upload("k", b"data")
    with pytest.raises(StorageNotConfiguredError):
        client.delete("k")
    with pytest.raises(StorageNotConfiguredError):
        client.check()
    with pytest.raises(StorageNotConfiguredError):
        client.presign_get("k")


def test_in_memory_client_tracks_objects():
    storage = InMemoryStorageClient()
    url = storage.upload("items/1/a.txt", b"abc", "text/plain")

    assert storage.stored_objects == {"items/1/a.txt": b"abc"}
    assert storage.content_types["items/1/a.txt"] == "text/plain"
    storage.delete(storage.key_from_url(url))
    assert storage.stored_objects == {}


def test_presigned_get_url_is_signed_for_the_object():
    url = urlparse(_spaces().presign_get("items/1/a.txt", expires_in=60))
    query = parse_qs(url.query)

    assert url.netloc == "media.nyc3.digitaloceanspaces.com"
    assert url.path == "/items/1/a.txt"
    assert query["X-Amz-Expires"] == ["60"]
    assert query["X-Amz-Signature"]


def test_in_memory_presign_carries_key_and_expiry():
    url = InMemoryStorageClient().presign_get("items/1/a b.txt", expires_in=120)
    assert url == "https://test-bucket.storage.example.test/items/1/a%20b.txt?op=get&expires=120"
