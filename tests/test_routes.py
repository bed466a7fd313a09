"""
Integration tests for the HTTP surface: editor, publishing, documents, quota and health.
"""

import pytest

from config_manager import ConfigManager
from app.main import create_app
from app.publishing.rate_limiter import PublishRateLimiter


CLIENT_HEADERS = {"CF-Connecting-IP": "203.0.113.7"}


@pytest.fixture()
def make_client(tmp_path, monkeypatch):
    """Create a test client backed by a temporary database."""
    apps = []

    def factory(**env):
        monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
        monkeypatch.setenv("MODERATION_ENABLED", "false")
        for key, value in env.items():
            monkeypatch.setenv(key, value)

        manager = ConfigManager(str(tmp_path / "publisher_config.json"))
        app = create_app(manager, rate_limiter=PublishRateLimiter("100/minute"))
        app.config.update(TESTING=True)
        apps.append(app)
        return app.test_client()

    yield factory
    for app in apps:
        app.extensions["publisher"]["publishing"]["service"].shutdown()


@pytest.fixture()
def client(make_client):
    return make_client()


def publish(client, content, title=None, headers=CLIENT_HEADERS):
    payload = {"content": content}
    if title is not None:
        payload["title"] = title
    return client.post("/", json=payload, headers=headers)


class TestEditor:
    """Test the editor page."""

    def test_editor_renders(self, client):
        response = client.get("/", headers=CLIENT_HEADERS)

        assert response.status_code == 200
        assert b"Markdown Publisher" in response.data
        assert b"Publish document" in response.data

    def test_editor_shows_low_quota(self, make_client):
        client = make_client(DAILY_LIMIT="3")

        response = client.get("/", headers=CLIENT_HEADERS)

        assert b"3 documents remaining" in response.data

    def test_form_publish_renders_link(self, client):
        response = client.post("/", data={"content": "# Hi"}, headers=CLIENT_HEADERS)

        assert response.status_code == 200
        assert b"Document published successfully" in response.data
        assert b"/doc/" in response.data

    def test_links_follow_proxy_prefix(self, client):
        headers = dict(CLIENT_HEADERS, **{"X-Forwarded-Prefix": "/pub"})

        response = client.post("/", data={"content": "# Hi"}, headers=headers)

        assert b'href="/pub/doc/' in response.data


class TestPublishApi:
    """Test JSON publishing and its status codes."""

    def test_publish_success(self, client):
        response = publish(client, "# Hello", title="Greeting")

        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        assert len(body["id"]) == 8
        assert body["quota"]["remaining"] == 49
        assert body["quota"]["total"] == 50
        assert body["error"] is None

    def test_empty_content(self, client):
        response = publish(client, "  ")

        assert response.status_code == 400
        assert response.get_json()["code"] == "empty_content"

    def test_payload_too_large(self, make_client):
        client = make_client(MAX_CONTENT_BYTES="1024")

        response = publish(client, "x" * 1500)

        assert response.status_code == 413
        assert response.get_json()["code"] == "payload_too_large"

    def test_quota_exhausted(self, make_client):
        client = make_client(DAILY_LIMIT="2")
        for _ in range(2):
            assert publish(client, "# Hello").status_code == 200

        response = publish(client, "# Hello")

        assert response.status_code == 429
        body = response.get_json()
        assert body["code"] == "insufficient_quota"
        assert body["quota"]["remaining"] == 0

    def test_blocked_content_refunded(self, client):
        response = publish(client, "<script>alert(1)</script>")

        assert response.status_code == 422
        assert response.get_json()["error"] == "Content blocked: Content contains potentially malicious code"

        quota = client.get("/api/quota", headers=CLIENT_HEADERS).get_json()["quota"]
        assert quota["remaining"] == 50

    def test_identities_are_separate(self, client):
        publish(client, "# Hello")

        other = client.get("/api/quota", headers={"CF-Connecting-IP": "198.51.100.1"}).get_json()
        assert other["quota"]["remaining"] == 50

    @pytest.mark.parametrize("body", [["# Hello"], "# Hello", 5])
    def test_body_must_be_object(self, client, body):
        response = client.post("/", json=body, headers=CLIENT_HEADERS)

        assert response.status_code == 400
        assert response.get_json()["code"] == "invalid_request"

    def test_malformed_json(self, client):
        response = client.post("/", data="{\"content\": ", content_type="application/json", headers=CLIENT_HEADERS)

        assert response.status_code == 400
        assert response.get_json()["error"] == "Request body must be a JSON object"

    @pytest.mark.parametrize("payload", [{"content": 5}, {"content": ["# Hello"]}, {"content": "# Hello", "title": 3}])
    def test_non_text_fields(self, client, payload):
        response = client.post("/", json=payload, headers=CLIENT_HEADERS)

        assert response.status_code == 400
        assert response.get_json()["code"] == "invalid_request"
        quota = client.get("/api/quota", headers=CLIENT_HEADERS).get_json()["quota"]
        assert quota["remaining"] == 50


class TestDocumentView:
    """Test viewing published documents."""

    def test_view_renders_markdown(self, client):
        doc_id = publish(client, "# Hello\n\n| a | b |\n|---|---|\n| 1 | 2 |").get_json()["id"]

        response = client.get(f"/doc/{doc_id}", headers=CLIENT_HEADERS)

        assert response.status_code == 200
        assert b"Hello</h1>" in response.data
        assert b"<table>" in response.data
        assert f"Document ID: {doc_id}".encode() in response.data

    def test_raw_html_is_escaped(self, client):
        doc_id = publish(client, "Hi <b>there</b>").get_json()["id"]

        response = client.get(f"/doc/{doc_id}", headers=CLIENT_HEADERS)

        assert b"&lt;b&gt;there&lt;/b&gt;" in response.data
        assert b"<b>there</b>" not in response.data

    def test_missing_document(self, client):
        assert client.get("/doc/nope1234", headers=CLIENT_HEADERS).status_code == 404

    def test_view_is_tracked(self, client):
        doc_id = publish(client, "# Hello").get_json()["id"]
        client.get(f"/doc/{doc_id}", headers=CLIENT_HEADERS)

        body = client.get("/api/quota", headers=CLIENT_HEADERS).get_json()

        breakdown = {b["operation_type"]: b["total_count"] for b in body["usage"]["breakdown"]}
        assert breakdown == {"publish": 1, "view": 1}
        assert body["quota"]["remaining"] == 48

    def test_view_allowed_with_exhausted_quota(self, make_client):
        client = make_client(DAILY_LIMIT="1")
        doc_id = publish(client, "# Hello").get_json()["id"]

        response = client.get(f"/doc/{doc_id}", headers=CLIENT_HEADERS)

        assert response.status_code == 200


class TestQuotaApi:
    """Test the quota statistics endpoint."""

    def test_quota_masks_identity(self, client):
        body = client.get("/api/quota", headers=CLIENT_HEADERS).get_json()

        assert body["ip"] == "203.0.*.*"
        assert body["quota"]["ip"] == "203.0.*.*"
        assert body["quota"]["remaining"] == 50
        assert body["quota"]["is_new_user"] is True
        assert body["usage"]["operations_today"] == 0
        assert body["usage"]["usage_percentage"] == 0

    def test_quota_uses_forwarded_for(self, client):
        body = client.get("/api/quota", headers={"X-Forwarded-For": "198.51.100.1, 10.0.0.1"}).get_json()

        assert body["ip"] == "198.51.*.*"

    def test_quota_after_publish(self, client):
        publish(client, "# Hello")

        body = client.get("/api/quota", headers=CLIENT_HEADERS).get_json()

        assert body["quota"]["remaining"] == 49
        assert body["usage"]["operations_today"] == 1
        assert body["usage"]["usage_percentage"] == 2


class TestHealth:
    """Test the health endpoint."""

    def test_health_reports_metrics(self, client):
        publish(client, "# Hello")

        response = client.get("/actuator/health")

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "UP"
        assert body["publish_metrics"]["published"] == 1
