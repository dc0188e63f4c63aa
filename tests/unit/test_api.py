"""
API Tests

Exercises the v1 REST endpoints through the Flask test client, backed by
in-memory repositories and a temporary blob directory.
"""

import io
from unittest.mock import patch

import pytest

from burnbox.domain.errors import MetadataStoreError
from burnbox.domain.system_config.entities import BYTES_PER_MB
from tests.conftest import OWNER_ID

USER = {"X-User-Id": OWNER_ID}
OTHER = {"X-User-Id": "mallory"}
ADMIN = {"X-User-Id": "root", "X-User-Role": "admin"}


def post_file(client, data=b"hello burnbox", filename="hello.txt", headers=USER, **fields):
    form = {"file": (io.BytesIO(data), filename)}
    form.update(fields)
    return client.post(
        "/api/v1/files/", data=form, headers=headers, content_type="multipart/form-data"
    )


@pytest.fixture
def registered(client):
    response = client.post("/api/v1/accounts/", headers=USER)
    assert response.status_code == 201
    return response.get_json()


class TestAccountsApi:

    def test_register_and_fetch(self, client, registered):
        assert registered["account_id"] == OWNER_ID
        assert registered["storage_used"] == 0

        response = client.get("/api/v1/accounts/me", headers=USER)
        assert response.status_code == 200
        assert response.get_json()["role"] == "user"

    def test_register_twice_conflicts(self, client, registered):
        response = client.post("/api/v1/accounts/", headers=USER)

        assert response.status_code == 409
        assert response.get_json()["error"] == "account_exists"

    def test_missing_identity_is_unauthenticated(self, client):
        response = client.post("/api/v1/accounts/")

        assert response.status_code == 401
        assert response.get_json()["error"] == "unauthenticated"

    def test_registration_closed(self, client):
        client.put("/api/v1/admin/config", json={"registration_allowed": False}, headers=ADMIN)

        response = client.post("/api/v1/accounts/", headers=USER)

        assert response.status_code == 403
        assert response.get_json()["error"] == "registration_closed"


class TestFilesApi:

    def test_upload_and_info(self, client, registered):
        response = post_file(client, expiration="1h")

        assert response.status_code == 201
        body = response.get_json()
        assert body["name"] == "hello.txt"
        assert body["size"] == len(b"hello burnbox")
        assert body["has_password"] is False
        assert body["expires_at"] is not None

        info = client.get(f"/api/v1/files/{body['object_id']}")
        assert info.status_code == 200
        assert info.get_json()["name"] == "hello.txt"
        assert "handle" not in info.get_json()

    def test_permanent_upload_has_no_expiry(self, client, registered):
        body = post_file(client, expiration="permanent").get_json()

        assert body["expires_at"] is None

    def test_upload_requires_file(self, client, registered):
        response = client.post("/api/v1/files/", data={}, headers=USER,
                               content_type="multipart/form-data")

        assert response.status_code == 400

    def test_upload_without_account(self, client):
        response = post_file(client)

        assert response.status_code == 404
        assert response.get_json()["error"] == "account_not_found"

    def test_upload_over_quota(self, client, registered, account_repo):
        account_repo.set_quota_override(OWNER_ID, 5)

        response = post_file(client)

        assert response.status_code == 413
        assert response.get_json()["error"] == "quota_exceeded"
        assert account_repo.storage_used(OWNER_ID) == 0

    def test_empty_upload_rejected(self, client, registered):
        response = post_file(client, data=b"")

        assert response.status_code == 400
        assert response.get_json()["error"] == "empty_file"

    def test_list_files(self, client, registered):
        post_file(client, data=b"one")
        post_file(client, data=b"three")

        response = client.get("/api/v1/files/", headers=USER)

        body = response.get_json()
        assert response.status_code == 200
        assert len(body["files"]) == 2
        assert body["storage_used"] == 8
        assert body["storage_quota"] == 10 * BYTES_PER_MB
        assert body["storage_remaining"] == 10 * BYTES_PER_MB - 8

    def test_download_with_password(self, client, registered):
        object_id = post_file(client, password="secret").get_json()["object_id"]
        url = f"/api/v1/files/{object_id}/download"

        assert client.post(url).status_code == 401
        wrong = client.post(url, json={"password": "nope"})
        assert wrong.get_json()["error"] == "incorrect_password"

        response = client.post(url, json={"password": "secret"})
        assert response.status_code == 200
        assert response.data == b"hello burnbox"
        assert response.headers["Content-Disposition"].startswith("attachment;")

    def test_single_use_download_once(self, client, registered, account_repo):
        object_id = post_file(client, single_use="true").get_json()["object_id"]
        url = f"/api/v1/files/{object_id}/download"

        first = client.post(url)
        assert first.data == b"hello burnbox"

        second = client.post(url)
        assert second.status_code == 404
        assert second.get_json()["message"] == "Link expired or file not found."
        assert account_repo.storage_used(OWNER_ID) == 0

    def test_preview_inline(self, client, registered):
        object_id = post_file(client).get_json()["object_id"]

        response = client.post(f"/api/v1/files/{object_id}/preview")

        assert response.status_code == 200
        assert response.headers["Content-Disposition"].startswith("inline;")

    def test_preview_single_use_disabled(self, client, registered):
        object_id = post_file(client, single_use="true").get_json()["object_id"]

        response = client.post(f"/api/v1/files/{object_id}/preview")

        assert response.status_code == 403
        assert response.get_json()["error"] == "preview_disabled"

    def test_delete_owner_only(self, client, registered):
        object_id = post_file(client).get_json()["object_id"]

        forbidden = client.delete(f"/api/v1/files/{object_id}", headers=OTHER)
        assert forbidden.status_code == 403

        assert client.delete(f"/api/v1/files/{object_id}", headers=USER).status_code == 204
        assert client.get(f"/api/v1/files/{object_id}").status_code == 404

    def test_unicode_filename_header(self, client, registered):
        object_id = post_file(client, filename="résumé.pdf").get_json()["object_id"]

        response = client.post(f"/api/v1/files/{object_id}/download")

        assert "filename*=UTF-8''r%C3%A9sum%C3%A9.pdf" in response.headers["Content-Disposition"]

    def test_store_failure_is_system_error(self, client, object_repo):
        with patch.object(object_repo, "get", side_effect=MetadataStoreError("down")):
            response = client.get(f"/api/v1/files/{'a' * 43}")

        assert response.status_code == 500
        assert response.get_json()["error"] == "system_error"


class TestConfigApi:

    def test_public_config(self, client):
        response = client.get("/api/v1/config/")

        assert response.get_json() == {"max_file_size_mb": 10, "default_storage_quota_mb": 10}

    def test_admin_only(self, client):
        assert client.get("/api/v1/admin/config", headers=USER).status_code == 403
        assert client.get("/api/v1/admin/config").status_code == 401

    def test_linked_update(self, client):
        response = client.put(
            "/api/v1/admin/config", json={"default_storage_quota_mb": 500}, headers=ADMIN
        )

        assert response.status_code == 200
        assert response.get_json()["max_file_size"] == 498073600

    def test_unlinked_rejection_reports_limit(self, client):
        response = client.put(
            "/api/v1/admin/config",
            json={"default_storage_quota_mb": 100, "max_file_size_mb": 99,
                  "max_file_size_linked": False},
            headers=ADMIN,
        )

        body = response.get_json()
        assert response.status_code == 400
        assert body["error"] == "ceiling_exceeds_quota_limit"
        assert body["context"]["max_allowed_mb"] == 95

    def test_non_numeric_values_rejected(self, client):
        response = client.put(
            "/api/v1/admin/config", json={"default_storage_quota_mb": "big"}, headers=ADMIN
        )

        assert response.status_code == 400


class TestAdminApi:

    def test_first_admin_setup(self, client):
        first = client.post("/api/v1/admin/setup", headers={"X-User-Id": "root"})
        assert first.status_code == 201
        assert first.get_json()["role"] == "admin"

        second = client.post("/api/v1/admin/setup", headers={"X-User-Id": "eve"})
        assert second.status_code == 403

    def test_quota_override(self, client, registered):
        url = f"/api/v1/admin/accounts/{OWNER_ID}/quota"

        response = client.patch(url, json={"quota_mb": 1}, headers=ADMIN)
        assert response.get_json()["storage_quota"] == BYTES_PER_MB

        cleared = client.patch(url, json={"quota_mb": None}, headers=ADMIN)
        assert cleared.get_json()["storage_quota"] is None

    def test_quota_override_unknown_account(self, client):
        response = client.patch(
            "/api/v1/admin/accounts/ghost/quota", json={"quota_mb": 1}, headers=ADMIN
        )

        assert response.status_code == 404

    def test_list_accounts(self, client, registered):
        response = client.get("/api/v1/admin/accounts", headers=ADMIN)

        assert [a["account_id"] for a in response.get_json()] == [OWNER_ID]

    def test_reset(self, client, registered, storage):
        post_file(client)
        post_file(client)

        response = client.post("/api/v1/admin/reset", headers=ADMIN)

        body = response.get_json()
        assert response.status_code == 200
        assert body["objects_removed"] == 2
        assert body["accounts_removed"] == 1
        assert body["blobs_removed"] == 2
        assert list(storage.base_path.iterdir()) == []
        assert client.get("/api/v1/accounts/me", headers=USER).status_code == 404


class TestHealth:

    @pytest.mark.parametrize("url", ["/health", "/api/v1/system/health"])
    def test_health_reports_components(self, client, url):
        with patch("burnbox.app_factory.redis_health_check", return_value=True):
            response = client.get(url)

        body = response.get_json()
        assert response.status_code == 200
        assert body["redis"] == "connected"
        assert body["celery"] == "unavailable"
        assert body["expiry_listener"] == "stopped"

    def test_degraded_without_redis(self, client):
        with patch("burnbox.app_factory.redis_health_check", return_value=False):
            response = client.get("/health")

        assert response.status_code == 503
        assert response.get_json()["status"] == "degraded"
