"""
Tests for the file-browser login URL flow.
"""

import json

import pytest
import requests

from storage.errors import FileBrowserError, FileBrowserNotConfigured
from storage.services import filebrowser_client
from storage.services.filebrowser_client import FileBrowserClient, build_temp_user_request


class FakeResponse:
    def __init__(self, status_code=200, text="", payload=None):
        self.status_code = status_code
        self.text = text if payload is None else json.dumps(payload)
        self._payload = payload

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeSession:
    """Replays queued responses (or raises queued exceptions) and records each POST."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def post(self, url, timeout=None, **kwargs):
        self.requests.append({"url": url, "timeout": timeout, **kwargs})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _client(session, base_url="http://fb.local:8080/"):
    return FileBrowserClient(base_url, "admin", "admin-pass", timeout=7, session=session)


@pytest.fixture
def fixed_hex(monkeypatch):
    values = iter(["a1b2c3d4e5f60718", "0123456789abcdef0123456789abcdef"])
    monkeypatch.setattr(filebrowser_client, "random_hex", lambda n: next(values))


class TestScopedLoginURL:

    def test_full_flow(self, fixed_hex):
        session = FakeSession(
            FakeResponse(200, "admin-token"),
            FakeResponse(201, ""),
            FakeResponse(200, "user-token\n"),
            FakeResponse(200, payload={"url": "/api/login/token/xyz"}),
        )

        url = _client(session).create_scoped_login_url("vol-a")

        assert url == "http://fb.local:8080/api/login/token/xyz"
        admin_login, create_user, user_login, token = session.requests
        assert admin_login["url"] == "http://fb.local:8080/api/login"
        assert admin_login["json"] == {"username": "admin", "password": "admin-pass"}
        assert admin_login["timeout"] == 7

        assert create_user["url"] == "http://fb.local:8080/api/users"
        assert create_user["headers"] == {"X-Auth": "admin-token"}
        data = create_user["json"]["data"]
        assert data["scope"] == "/volumes/vol-a/_data"
        assert data["username"] == "tempuser_a1b2c3d4e5f60718"
        assert data["password"] == "0123456789abcdef0123456789abcdef"

        assert user_login["json"] == {
            "username": "tempuser_a1b2c3d4e5f60718",
            "password": "0123456789abcdef0123456789abcdef",
        }
        assert token["url"] == "http://fb.local:8080/api/login/token"
        assert token["headers"] == {"X-Auth": "user-token"}

    def test_temp_user_credentials_are_random(self):
        session = FakeSession(
            FakeResponse(200, "admin-token"),
            FakeResponse(200, ""),
            FakeResponse(200, "user-token"),
            FakeResponse(200, payload={"url": "/x"}),
        )

        _client(session).create_scoped_login_url("vol-a")

        data = session.requests[1]["json"]["data"]
        assert data["username"].startswith("tempuser_")
        assert len(data["username"]) == len("tempuser_") + 16
        assert len(data["password"]) == 32

    def test_admin_login_failure(self):
        session = FakeSession(FakeResponse(403, "403 Forbidden"))

        with pytest.raises(FileBrowserError) as exc_info:
            _client(session).create_scoped_login_url("vol-a")

        assert str(exc_info.value) == "Failed to login as admin: login failed with status 403: 403 Forbidden"
        assert len(session.requests) == 1

    def test_create_user_failure(self):
        session = FakeSession(FakeResponse(200, "admin-token"), FakeResponse(500, "500 Internal Server Error"))

        with pytest.raises(FileBrowserError, match="Failed to create temp user: create user failed with status 500"):
            _client(session).create_scoped_login_url("vol-a")

    def test_temp_user_login_failure(self):
        session = FakeSession(
            FakeResponse(200, "admin-token"),
            FakeResponse(201, ""),
            FakeResponse(403, "denied"),
        )

        with pytest.raises(FileBrowserError, match="Failed to login as temp user"):
            _client(session).create_scoped_login_url("vol-a")

    def test_token_response_without_url(self):
        session = FakeSession(
            FakeResponse(200, "admin-token"),
            FakeResponse(201, ""),
            FakeResponse(200, "user-token"),
            FakeResponse(200, payload={"token": "abc"}),
        )

        with pytest.raises(FileBrowserError, match="did not contain a url"):
            _client(session).create_scoped_login_url("vol-a")

    def test_token_response_not_json(self):
        session = FakeSession(
            FakeResponse(200, "admin-token"),
            FakeResponse(201, ""),
            FakeResponse(200, "user-token"),
            FakeResponse(200, "<html>"),
        )

        with pytest.raises(FileBrowserError, match="failed to decode get token response"):
            _client(session).create_scoped_login_url("vol-a")

    def test_connection_error(self):
        session = FakeSession(requests.exceptions.ConnectionError("connection refused"))

        with pytest.raises(FileBrowserError, match="login request failed: connection refused"):
            _client(session).create_scoped_login_url("vol-a")

    def test_not_configured(self):
        session = FakeSession()

        with pytest.raises(FileBrowserNotConfigured):
            _client(session, base_url="").create_scoped_login_url("vol-a")
        assert session.requests == []


def test_temp_user_permissions():
    body = build_temp_user_request("vol-a", "u", "p")

    assert body["what"] == "user"
    assert body["which"] == []
    perm = body["data"]["perm"]
    assert perm == {
        "admin": False,
        "execute": False,
        "create": True,
        "rename": True,
        "modify": True,
        "delete": True,
        "share": False,
        "download": True,
    }
    assert body["data"]["lockPassword"] is True
