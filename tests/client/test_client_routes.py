from __future__ import annotations

from datetime import datetime

from config_client.dependencies import get_config_server_client
from config_client.fetcher import ConfigClientError
from config_client.models import Common, DemoProperties, Features, Service

USER_AUTH = ("config-user", "config-pass")
ADMIN_AUTH = ("admin", "admin-pass")


class StubConfigServerClient:
    def __init__(self):
        self.environment: dict = {
            "name": "demo",
            "profiles": ["dev"],
            "propertySources": [{"name": "demo-dev", "source": {"demo.service.name": "refreshed"}}],
        }
        self.exc: Exception | None = None
        self.calls = 0

    async def fetch_environment(self) -> dict:
        self.calls += 1
        if self.exc is not None:
            raise self.exc
        return self.environment


def _properties() -> DemoProperties:
    return DemoProperties(
        service=Service(name="demo-service-dev", features=Features(feature_x=True, feature_y=False)),
        common=Common(version="1.0.0", author="Platform Team <ops>"),
    )


def test_health_is_anonymous_and_reports_loaded(config_client):
    resp = config_client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "UP"
    assert body["environment"] == "DEV"
    assert body["configLoaded"] is True
    datetime.fromisoformat(body["timestamp"])


def test_health_config_loaded_true_for_empty_tree(config_client, config_client_app):
    config_client_app.state.demo_properties = DemoProperties()
    assert config_client.get("/health").json()["configLoaded"] is True


def test_health_config_loaded_false_without_tree(config_client, config_client_app):
    config_client_app.state.demo_properties = None
    assert config_client.get("/health").json()["configLoaded"] is False


def test_api_config_returns_bound_tree(config_client, config_client_app):
    config_client_app.state.demo_properties = _properties()

    resp = config_client.get("/api/config", auth=USER_AUTH)

    assert resp.status_code == 200
    body = resp.json()
    assert set(body) == {"environment", "service", "common", "timestamp"}
    assert body["environment"] == "DEV"
    assert body["service"]["name"] == "demo-service-dev"
    assert body["service"]["features"] == {"featureX": True, "featureY": False, "featureZ": None}
    assert body["service"]["parameters"] is None
    assert body["common"] == {"version": "1.0.0", "author": "Platform Team <ops>", "created": None}
    datetime.fromisoformat(body["timestamp"])


def test_api_config_with_nothing_bound(config_client, config_client_app):
    config_client_app.state.demo_properties = None

    body = config_client.get("/api/config", auth=USER_AUTH).json()

    assert body["service"] is None
    assert body["common"] is None


def test_api_config_requires_authentication(config_client):
    resp = config_client.get("/api/config")

    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Basic"


def test_index_renders_html(config_client, config_client_app):
    config_client_app.state.demo_properties = _properties()

    resp = config_client.get("/", auth=USER_AUTH)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "Configuration (DEV)" in resp.text
    assert "demo.service.name" in resp.text
    assert "demo-service-dev" in resp.text
    assert "demo.service.features.featureX" in resp.text
    # Values are escaped.
    assert "Platform Team &lt;ops&gt;" in resp.text


def test_index_escapes_markup_from_configuration(config_client, config_client_app):
    config_client_app.state.demo_properties = DemoProperties(
        service=Service(name="<script>alert(1)</script>"),
    )

    resp = config_client.get("/", auth=USER_AUTH)

    assert "<script>" not in resp.text
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in resp.text


def test_index_without_bound_configuration(config_client, config_client_app):
    config_client_app.state.demo_properties = None

    resp = config_client.get("/", auth=USER_AUTH)

    assert resp.status_code == 200
    assert "No configuration bound" in resp.text


def test_index_requires_authentication(config_client):
    assert config_client.get("/").status_code == 401


def test_refresh_requires_admin_role(config_client, config_client_app):
    stub = StubConfigServerClient()

    config_client_app.dependency_overrides[get_config_server_client] = lambda: stub
    try:
        assert config_client.post("/refresh").status_code == 401
        assert config_client.post("/refresh", auth=USER_AUTH).status_code == 403
        assert stub.calls == 0
    finally:
        config_client_app.dependency_overrides.clear()


def test_refresh_rebinds_configuration(config_client, config_client_app):
    stub = StubConfigServerClient()
    config_client_app.state.demo_properties = _properties()

    config_client_app.dependency_overrides[get_config_server_client] = lambda: stub
    try:
        resp = config_client.post("/refresh", auth=ADMIN_AUTH)
        assert resp.status_code == 200
        assert resp.json() == {"refreshed": True, "propertySources": ["demo-dev"]}
        assert config_client_app.state.demo_properties.service.name == "refreshed"
        assert config_client_app.state.demo_properties.common is None
    finally:
        config_client_app.dependency_overrides.clear()


def test_refresh_maps_fetch_failure_to_502_and_keeps_old_tree(config_client, config_client_app):
    stub = StubConfigServerClient()
    stub.exc = ConfigClientError("Failed to fetch configuration from http://config-server.test/demo/dev")
    before = _properties()
    config_client_app.state.demo_properties = before

    config_client_app.dependency_overrides[get_config_server_client] = lambda: stub
    try:
        resp = config_client.post("/refresh", auth=ADMIN_AUTH)
        assert resp.status_code == 502
        assert "Failed to fetch configuration" in resp.json()["detail"]
        assert config_client_app.state.demo_properties is before
    finally:
        config_client_app.dependency_overrides.clear()
