"""
API Smoke Tests

Tests for the FastAPI endpoints:
1. GET /health returns ok
2. POST /api/generate returns a package with attachment headers
3. Device registration answers 201, then 200, and rejects bad tokens
4. GET /api/v1/passes/... serves the package and honours If-Modified-Since
5. Generation failures map to structured error responses
6. Concurrent first requests share one lazily built service
"""

import io
import json
import threading
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor
from email.utils import format_datetime
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from api import deps
from api.app import app
from api.deps import get_if_modified_since, get_pass_token, get_service
from core.config.runtime import RuntimeConfig
from orchestrator.service import PassService
from orchestrator.store import InMemoryStateStore

from fixtures.common import PASS_TYPE_ID, make_packager


@pytest.fixture
def store():
    return InMemoryStateStore()


@pytest.fixture
def service(packager, store):
    return PassService(packager, store)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _descriptor(content: bytes) -> dict:
    with zipfile.ZipFile(io.BytesIO(content)) as zf:
        return json.loads(zf.read("pass.json"))


def _issue(client) -> dict:
    response = client.post("/api/generate", json={"name": "Ada"})
    assert response.status_code == 200
    return _descriptor(response.content)


def _auth(token: str) -> dict:
    return {"Authorization": f"ApplePass {token}"}


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["ok"] is True
        assert response.json()["service"] == "pkpass-service"

    def test_root(self, client):
        assert client.get("/").json()["ok"] is True


class TestGenerate:

    def test_returns_package(self, client, store):
        response = client.post("/api/generate", json={"name": "Ada"})
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/vnd.apple.pkpass"
        assert response.headers["content-disposition"] == 'attachment; filename="loyalty.pkpass"'
        descriptor = _descriptor(response.content)
        assert descriptor["serialNumber"] in store
        assert descriptor["webServiceURL"] == "http://testserver/api/"

    def test_empty_body_uses_default_name(self, client, store):
        response = client.post("/api/generate", json={})
        assert response.status_code == 200
        serial = _descriptor(response.content)["serialNumber"]
        assert store.get(serial).name == "Customer"

    def test_configured_web_service_url(self, raw_signer, store):
        packager = make_packager(raw_signer, web_service_url="https://passes.example.com/api/")
        app.dependency_overrides[get_service] = lambda: PassService(packager, store)
        try:
            response = TestClient(app).post("/api/generate", json={"name": "Ada"})
        finally:
            app.dependency_overrides.clear()
        assert _descriptor(response.content)["webServiceURL"] == "https://passes.example.com/api/"

    def test_name_too_long(self, client):
        assert client.post("/api/generate", json={"name": "x" * 201}).status_code == 422

    def test_missing_asset_is_bad_gateway(self, raw_signer, store):
        packager = make_packager(raw_signer, asset_names=("logo.png", "missing.png"))
        app.dependency_overrides[get_service] = lambda: PassService(packager, store)
        try:
            response = TestClient(app).post("/api/generate", json={"name": "Ada"})
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 502
        body = response.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "GENERATION_FAILED"
        assert body["error"]["details"]["stage"] == "assets"
        assert len(store) == 0


class TestRegisterDevice:

    def _url(self, serial: str, device: str = "dev1", pass_type: str = PASS_TYPE_ID) -> str:
        return f"/api/v1/devices/{device}/registrations/{pass_type}/{serial}"

    def test_register_then_reregister(self, client, store):
        descriptor = _issue(client)
        serial, token = descriptor["serialNumber"], descriptor["authenticationToken"]
        first = client.post(self._url(serial), json={"pushToken": "push1"}, headers=_auth(token))
        assert first.status_code == 201
        second = client.post(self._url(serial), json={"pushToken": "push1"}, headers=_auth(token))
        assert second.status_code == 200
        assert len(store.get(serial).devices) == 1

    def test_missing_authorization(self, client):
        serial = _issue(client)["serialNumber"]
        response = client.post(self._url(serial), json={"pushToken": "push1"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_FAILED"

    def test_wrong_scheme(self, client):
        descriptor = _issue(client)
        response = client.post(
            self._url(descriptor["serialNumber"]),
            json={"pushToken": "push1"},
            headers={"Authorization": f"Bearer {descriptor['authenticationToken']}"},
        )
        assert response.status_code == 401

    def test_unknown_serial(self, client):
        response = client.post(self._url("nope"), json={"pushToken": "p"}, headers=_auth("x" * 32))
        assert response.status_code == 404

    def test_missing_push_token(self, client):
        descriptor = _issue(client)
        response = client.post(
            self._url(descriptor["serialNumber"]),
            json={},
            headers=_auth(descriptor["authenticationToken"]),
        )
        assert response.status_code == 422


class TestLatestPass:

    def _url(self, serial: str) -> str:
        return f"/api/v1/passes/{PASS_TYPE_ID}/{serial}"

    def test_serves_package(self, client):
        descriptor = _issue(client)
        response = client.get(self._url(descriptor["serialNumber"]), headers=_auth(descriptor["authenticationToken"]))
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/vnd.apple.pkpass"
        assert response.headers["last-modified"].endswith("GMT")
        assert _descriptor(response.content)["serialNumber"] == descriptor["serialNumber"]

    def test_not_modified(self, client):
        descriptor = _issue(client)
        headers = _auth(descriptor["authenticationToken"])
        first = client.get(self._url(descriptor["serialNumber"]), headers=headers)
        headers["If-Modified-Since"] = first.headers["last-modified"]
        second = client.get(self._url(descriptor["serialNumber"]), headers=headers)
        assert second.status_code == 304
        assert second.content == b""

    def test_modified_since_older_date(self, client):
        descriptor = _issue(client)
        headers = _auth(descriptor["authenticationToken"])
        headers["If-Modified-Since"] = format_datetime(
            datetime.now(timezone.utc) - timedelta(days=1), usegmt=True
        )
        assert client.get(self._url(descriptor["serialNumber"]), headers=headers).status_code == 200

    def test_garbage_if_modified_since_ignored(self, client):
        descriptor = _issue(client)
        headers = _auth(descriptor["authenticationToken"])
        headers["If-Modified-Since"] = "yesterday-ish"
        assert client.get(self._url(descriptor["serialNumber"]), headers=headers).status_code == 200

    def test_wrong_token(self, client):
        serial = _issue(client)["serialNumber"]
        assert client.get(self._url(serial), headers=_auth("x" * 32)).status_code == 401

    def test_wrong_pass_type(self, client):
        descriptor = _issue(client)
        response = client.get(
            f"/api/v1/passes/pass.com.other/{descriptor['serialNumber']}",
            headers=_auth(descriptor["authenticationToken"]),
        )
        assert response.status_code == 404


class TestHeaderParsing:

    def test_pass_token(self):
        assert get_pass_token("ApplePass abc") == "abc"
        assert get_pass_token("ApplePass   ") is None
        assert get_pass_token("Basic abc") is None
        assert get_pass_token(None) is None

    def test_if_modified_since(self):
        parsed = get_if_modified_since("Wed, 21 Oct 2026 07:28:00 GMT")
        assert parsed == datetime(2026, 10, 21, 7, 28, tzinfo=timezone.utc)
        assert get_if_modified_since("nonsense") is None
        assert get_if_modified_since(None) is None


class TestSharedService:

    def test_concurrent_first_use_builds_one_service(self, monkeypatch, packager):
        calls = []

        def slow_config():
            calls.append(threading.get_ident())
            time.sleep(0.05)
            return RuntimeConfig()

        monkeypatch.setattr(deps, "load_config", slow_config)
        monkeypatch.setattr(deps, "create_packager", lambda config: packager)
        deps.set_service(None)
        try:
            with ThreadPoolExecutor(max_workers=4) as pool:
                services = list(pool.map(lambda _: deps.get_service(), range(4)))
        finally:
            deps.set_service(None)

        assert len(calls) == 1
        assert len({id(s) for s in services}) == 1
        assert len({id(s.store) for s in services}) == 1
