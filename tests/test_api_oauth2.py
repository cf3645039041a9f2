# Tests for the provider HTTP endpoints.
# Created: 2026-10-19

import html
import re
from urllib.parse import parse_qs, urlsplit

import pytest
from conftest import CLIENT_ID, CLIENT_SECRET, PASSWORD, REDIRECT_URI, USERNAME
from fastapi import FastAPI
from fastapi.testclient import TestClient

from authcode.api import mount_routers
from authcode.api.oauth2 import router
from authcode.config import Settings
from authcode.oauth2.server import create_oauth_server


@pytest.fixture
def server():
    return create_oauth_server(Settings())


@pytest.fixture
def test_app(server, monkeypatch):
    import authcode.oauth2.server as mod

    monkeypatch.setattr(mod, "_server", server)
    app = FastAPI()
    app.include_router(router)
    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


def _login(client, state=None, **overrides):
    data = {
        "client_id": CLIENT_ID,
        "redirect_uri": REDIRECT_URI,
        "response_type": "code",
        "username": USERNAME,
        "password": PASSWORD,
    }
    if state is not None:
        data["state"] = state
    data.update(overrides)
    return client.post("/authorize", data=data, follow_redirects=False)


def _code(resp):
    return parse_qs(urlsplit(resp.headers["location"]).query)["code"][0]


def _token_request(client, code, **overrides):
    data = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": REDIRECT_URI,
        "client_id": CLIENT_ID,
        "client_secret": CLIENT_SECRET,
    }
    data.update(overrides)
    return client.post("/token", data=data)


class TestAuthorizeForm:
    """GET /authorize"""

    def test_shows_login_form(self, client):
        resp = client.get(
            "/authorize",
            params={
                "client_id": CLIENT_ID,
                "redirect_uri": REDIRECT_URI,
                "response_type": "code",
            },
        )
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert 'action="/authorize"' in resp.text
        assert 'name="username"' in resp.text
        assert 'name="password"' in resp.text

    def test_echoes_hidden_fields(self, client):
        state = 'x"><script>alert(1)</script>'
        resp = client.get(
            "/authorize",
            params={
                "client_id": CLIENT_ID,
                "redirect_uri": REDIRECT_URI,
                "response_type": "code",
                "state": state,
            },
        )
        assert resp.status_code == 200
        assert "<script>alert(1)</script>" not in resp.text
        hidden = dict(re.findall(r'<input type="hidden" name="(\w+)" value="([^"]*)">', resp.text))
        assert {k: html.unescape(v) for k, v in hidden.items()} == {
            "client_id": CLIENT_ID,
            "redirect_uri": REDIRECT_URI,
            "response_type": "code",
            "state": state,
        }

    def test_unknown_client(self, client):
        resp = client.get(
            "/authorize",
            params={"client_id": "unknown", "redirect_uri": REDIRECT_URI, "response_type": "code"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_client"

    def test_missing_client_id(self, client):
        resp = client.get("/authorize", params={"redirect_uri": REDIRECT_URI})
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_client"

    def test_unregistered_redirect_uri(self, client):
        resp = client.get(
            "/authorize",
            params={
                "client_id": CLIENT_ID,
                "redirect_uri": "http://localhost:4000/callback/evil",
                "response_type": "code",
            },
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_redirect_uri"


class TestAuthorizeSubmit:
    """POST /authorize"""

    def test_redirects_with_code(self, client):
        resp = _login(client)
        assert resp.status_code == 302
        location = resp.headers["location"]
        assert location.startswith(f"{REDIRECT_URI}?code=")
        assert "state=" not in location

    def test_state_round_trips(self, client):
        resp = _login(client, state="xyz789")
        assert resp.status_code == 302
        assert parse_qs(urlsplit(resp.headers["location"]).query)["state"] == ["xyz789"]
        assert resp.headers["location"].endswith("&state=xyz789")

    def test_bad_password(self, client):
        resp = _login(client, password="nope")
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_credentials"

    def test_unsupported_response_type(self, client):
        resp = _login(client, response_type="token")
        assert resp.status_code == 400
        assert resp.json()["error"] == "unsupported_response_type"

    def test_forged_client(self, client):
        resp = _login(client, client_id="forged")
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_client"

    def test_forged_redirect_uri(self, client):
        resp = _login(client, redirect_uri="https://evil.example/cb")
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_redirect_uri"
        assert "location" not in resp.headers


class TestToken:
    """POST /token"""

    def test_exchange(self, client):
        resp = _token_request(client, _code(_login(client)))
        assert resp.status_code == 200
        data = resp.json()
        assert data["token_type"] == "Bearer"
        assert data["access_token"]
        assert resp.headers["cache-control"] == "no-store"

    def test_replay(self, client):
        code = _code(_login(client))
        assert _token_request(client, code).status_code == 200
        resp = _token_request(client, code)
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_grant"

    def test_wrong_secret_keeps_code(self, client):
        code = _code(_login(client))
        resp = _token_request(client, code, client_secret="wrong")
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_client"
        assert _token_request(client, code).status_code == 200

    def test_redirect_mismatch_consumes_code(self, client):
        code = _code(_login(client))
        resp = _token_request(client, code, redirect_uri="http://localhost:4000/other")
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_grant"
        assert _token_request(client, code).status_code == 400

    def test_unsupported_grant_type(self, client):
        resp = _token_request(client, "whatever", grant_type="client_credentials")
        assert resp.status_code == 400
        assert resp.json()["error"] == "unsupported_grant_type"

    def test_empty_body(self, client):
        resp = client.post("/token", data={})
        assert resp.status_code == 400
        assert resp.json()["error"] == "unsupported_grant_type"


class TestResource:
    """GET /resource"""

    def test_missing_header(self, client):
        resp = client.get("/resource")
        assert resp.status_code == 401
        assert resp.json()["error"] == "missing_authorization"
        assert resp.headers["www-authenticate"].startswith("Bearer")

    def test_invalid_token(self, client):
        resp = client.get("/resource", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "invalid_token"

    def test_resource_is_idempotent(self, client):
        token = _token_request(client, _code(_login(client))).json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}
        first = client.get("/resource", headers=headers)
        second = client.get("/resource", headers=headers)
        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()


class TestFullFlow:
    """The end-to-end authorization code scenario."""

    def test_alice_reads_her_resource(self, client):
        form = client.get(
            f"/authorize?client_id={CLIENT_ID}&redirect_uri={REDIRECT_URI}&response_type=code"
        )
        assert form.status_code == 200

        login = _login(client)
        assert login.status_code == 302
        code = _code(login)
        assert login.headers["location"] == f"{REDIRECT_URI}?code={code}"

        token_resp = _token_request(client, code)
        assert token_resp.status_code == 200
        token = token_resp.json()["access_token"]

        resource = client.get("/resource", headers={"Authorization": f"Bearer {token}"})
        assert resource.status_code == 200
        assert resource.json() == {"message": "Hello, alice! This is your protected resource."}

    def test_two_owners_never_see_each_other(self, client, server):
        # A second resource owner on the same client
        from authcode.oauth2.models import ResourceOwner
        from authcode.oauth2.registry import Registry

        server.registry = Registry(
            clients=server.registry.clients,
            users=[*server.registry.users, ResourceOwner("bob", "hunter2")],
        )
        alice = _token_request(client, _code(_login(client))).json()["access_token"]
        bob = _token_request(
            client, _code(_login(client, username="bob", password="hunter2"))
        ).json()["access_token"]

        for token, name in ((alice, "alice"), (bob, "bob")):
            resp = client.get("/resource", headers={"Authorization": f"Bearer {token}"})
            assert resp.json()["message"].startswith(f"Hello, {name}!")


class TestAppWiring:
    def test_health(self, server, monkeypatch):
        import authcode.oauth2.server as mod

        monkeypatch.setattr(mod, "_server", server)
        app = FastAPI()
        mount_routers(app)
        client = TestClient(app)

        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {
            "status": "ok",
            "clients": 1,
            "pending_codes": 0,
            "issued_tokens": 0,
        }
        _login(client)
        assert client.get("/health").json()["pending_codes"] == 1

    def test_create_api_app(self):
        from authcode.api.serve import create_api_app

        client = TestClient(create_api_app())
        assert client.get("/health").status_code == 200
        assert client.get("/resource").status_code == 401
        assert client.post("/token", data={}).status_code == 400
        form = client.get(
            "/authorize",
            params={"client_id": CLIENT_ID, "redirect_uri": REDIRECT_URI, "response_type": "code"},
        )
        assert form.status_code == 200
