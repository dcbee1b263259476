import os

from fastapi.testclient import TestClient

import utils.storage
from core.config import STATIC_DIR
from main import app
from utils.storage import extract_key_from_url, generate_key, resolve_content_type


class FakeS3:
    def __init__(self):
        self.calls = []

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        self.calls.append((operation, Params, ExpiresIn))
        return f"https://bucket.example.com/{Params['Key']}?signature=abc"

    def delete_object(self, Bucket, Key):
        self.calls.append(("delete_object", Key))


def test_generate_key_layout():
    key = generate_key("m1", "glb", "my chair (1).glb")
    assert key.startswith("m1/models/")
    assert key.endswith("-my_chair__1_.glb")
    assert generate_key("m1", "thumbnail", "a.png").startswith("m1/thumbnails/")


def test_resolve_content_type():
    assert resolve_content_type("glb") == "model/gltf-binary"
    assert resolve_content_type("thumbnail", "image/png") == "image/png"
    assert resolve_content_type("thumbnail", "text/html") == "image/webp"


def test_extract_key_from_url():
    assert extract_key_from_url("https://cdn.example.com/m1/models/a.glb") == "m1/models/a.glb"
    assert extract_key_from_url("/static/m1/models/a.glb") == "m1/models/a.glb"
    assert extract_key_from_url("") is None


def test_direct_upload_stores_locally(client, merchant):
    r = client.post(
        "/upload/direct",
        data={"fileType": "glb"},
        files={"file": ("chair.glb", b"glTF-binary", "model/gltf-binary")},
        headers=merchant["headers"],
    )
    assert r.status_code == 200
    body = r.json()
    assert body["key"].startswith(f"{merchant['id']}/models/")
    assert body["publicUrl"] == f"/static/{body['key']}"

    with open(os.path.join(STATIC_DIR, body["key"]), "rb") as f:
        assert f.read() == b"glTF-binary"
    assert client.get(body["publicUrl"]).content == b"glTF-binary"


def test_direct_upload_size_limit(client, merchant, monkeypatch):
    monkeypatch.setitem(utils.storage.MAX_SIZES, "thumbnail", 4)
    r = client.post(
        "/upload/direct",
        data={"fileType": "thumbnail"},
        files={"file": ("thumb.png", b"12345", "image/png")},
        headers=merchant["headers"],
    )
    assert r.status_code == 400
    assert "exceeds" in r.json()["error"]


def test_direct_upload_rejects_file_type(client, merchant):
    r = client.post(
        "/upload/direct",
        data={"fileType": "exe"},
        files={"file": ("x.exe", b"MZ", "application/octet-stream")},
        headers=merchant["headers"],
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid file type. Must be glb, usdz, or thumbnail"


def test_direct_upload_requires_file(client, merchant):
    r = client.post("/upload/direct", data={"fileType": "glb"}, headers=merchant["headers"])
    assert r.status_code == 400
    assert r.json()["error"] == "File is required"


def test_presigned_url(client, merchant, monkeypatch):
    fake = FakeS3()
    monkeypatch.setattr(utils.storage, "s3_client", fake)

    r = client.post(
        "/upload/presigned-url",
        json={"fileName": "chair.usdz", "fileType": "usdz"},
        headers=merchant["headers"],
    )
    assert r.status_code == 200
    body = r.json()
    assert body["key"].startswith(f"{merchant['id']}/models/")
    assert body["uploadUrl"].startswith("https://bucket.example.com/")
    assert body["expiresIn"] == 3600
    operation, params, _ = fake.calls[0]
    assert operation == "put_object"
    assert params["ContentType"] == "model/vnd.usdz+zip"


def test_presigned_url_validation(client, merchant):
    r = client.post(
        "/upload/presigned-url",
        json={"fileName": "", "fileType": "zip"},
        headers=merchant["headers"],
    )
    assert r.status_code == 400
    assert set(r.json()["fields"]) == {"fileName", "fileType"}


def test_presigned_url_without_storage(merchant):
    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.post(
            "/upload/presigned-url",
            json={"fileName": "chair.glb", "fileType": "glb"},
            headers=merchant["headers"],
        )
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}


def test_delete_own_file(client, merchant):
    uploaded = client.post(
        "/upload/direct",
        data={"fileType": "glb"},
        files={"file": ("chair.glb", b"data", "model/gltf-binary")},
        headers=merchant["headers"],
    ).json()

    r = client.delete(f"/upload/{uploaded['key']}", headers=merchant["headers"])
    assert r.status_code == 200
    assert r.json() == {"message": "File deleted successfully"}
    assert not os.path.exists(os.path.join(STATIC_DIR, uploaded["key"]))


def test_delete_foreign_file(client, merchant, other_merchant):
    r = client.delete(f"/upload/{other_merchant['id']}/models/x.glb", headers=merchant["headers"])
    assert r.status_code == 403


def _upload_as(client, owner):
    return client.post(
        "/upload/direct",
        data={"fileType": "glb"},
        files={"file": ("chair.glb", b"data", "model/gltf-binary")},
        headers=owner["headers"],
    ).json()


def test_dot_segments_cannot_reach_foreign_files(client, merchant, other_merchant):
    foreign = _upload_as(client, other_merchant)
    foreign_path = os.path.join(STATIC_DIR, foreign["key"])

    r = client.delete(f"/upload/{merchant['id']}/%2e%2e/{foreign['key']}", headers=merchant["headers"])
    assert r.status_code == 403
    assert os.path.exists(foreign_path)


def test_double_encoded_dot_segments_stay_literal(client, merchant, other_merchant):
    foreign = _upload_as(client, other_merchant)
    foreign_path = os.path.join(STATIC_DIR, foreign["key"])

    client.delete(f"/upload/{merchant['id']}/%252e%252e/{foreign['key']}", headers=merchant["headers"])
    assert os.path.exists(foreign_path)
