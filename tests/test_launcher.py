"""Tests for launching a flow: URL generation and end-to-end redirect."""

import asyncio
import socket
from urllib.parse import parse_qs, urlsplit

import pytest
from google_auth_oauthlib.flow import Flow

from tokenflow import generate_refresh_token, launch
from tokenflow.flow import FlowState
from tokenflow.launcher import build_oauth_client
from tokenflow.server import DEFAULT_PORT


def _port_free(port: int) -> bool:
    with socket.socket() as s:
        try:
            s.bind(("127.0.0.1", port))
        except OSError:
            return False
    return True


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def test_build_oauth_client_url():
    client = build_oauth_client(
        "my-client.apps.googleusercontent.com",
        "shh",
        ["scope-a", "scope-b"],
        "http://127.0.0.1:8091",
    )
    url, _state = client.authorization_url(
        access_type="offline", include_granted_scopes="true"
    )
    query = parse_qs(urlsplit(url).query)
    assert query["client_id"] == ["my-client.apps.googleusercontent.com"]
    assert query["redirect_uri"] == ["http://127.0.0.1:8091"]
    assert query["scope"] == ["scope-a scope-b"]
    assert query["access_type"] == ["offline"]
    assert query["include_granted_scopes"] == ["true"]


def test_launch_returns_ready_flow(fake_clients):
    port = _free_port()

    async def scenario():
        flow = await launch(
            "id", "secret", "scope-a", start_port=port, client_factory=fake_clients
        )
        flow.cancel()
        return flow

    flow = asyncio.run(scenario())
    client = fake_clients.built[0]
    assert client.redirect_uri == f"http://127.0.0.1:{port}"
    assert client.scopes == ["scope-a"]
    assert client.auth_params == {
        "access_type": "offline",
        "include_granted_scopes": "true",
    }
    assert flow.authorize_url.startswith("https://accounts.example.com/")
    assert flow.oauth_client is client


def test_launch_embeds_actual_port_when_start_port_taken(fake_clients):
    with socket.socket() as blocker:
        blocker.bind(("127.0.0.1", 0))
        blocker.listen()
        taken = blocker.getsockname()[1]

        async def scenario():
            flow = await launch(
                "id",
                "secret",
                ["scope-a"],
                start_port=taken,
                client_factory=fake_clients,
            )
            flow.cancel()
            return flow

        flow = asyncio.run(scenario())

    query = parse_qs(urlsplit(flow.authorize_url).query)
    assert query["redirect_uri"] == [f"http://127.0.0.1:{taken + 1}"]


def test_launch_closes_listener_when_client_fails(get):
    port = _free_port()

    def broken_factory(*args):
        raise ValueError("bad client config")

    async def scenario():
        with pytest.raises(ValueError, match="bad client config"):
            await launch(
                "id", "secret", ["s"], start_port=port, client_factory=broken_factory
            )
        await asyncio.sleep(0)
        with pytest.raises(OSError):
            await get(port, "/?code=abc")

    asyncio.run(scenario())


def test_default_port_scenario(get, monkeypatch):
    """Launch on 8091, redirect with a code, and read back the refresh token."""
    if not _port_free(DEFAULT_PORT):
        pytest.skip(f"port {DEFAULT_PORT} is busy")

    exchanged = []

    def fake_fetch_token(self, code=None, **kwargs):
        exchanged.append(code)
        self.oauth2session.token = {
            "access_token": "at-123",
            "refresh_token": "rt-xyz",
            "token_type": "Bearer",
        }
        return self.oauth2session.token

    monkeypatch.setattr(Flow, "fetch_token", fake_fetch_token)

    async def scenario():
        flow = await generate_refresh_token("id", "secret", ["scope-a"])
        url = flow.authorize_url
        status, body = await get(DEFAULT_PORT, "/?code=abc123")
        token = await flow.get_token()
        return flow, url, status, body, token

    flow, url, status, body, token = asyncio.run(scenario())
    assert "scope-a" in url
    assert "8091" in url
    assert status == "HTTP/1.1 200 OK"
    assert body == "Authentication successful! Please return to the console."
    assert token == "rt-xyz"
    assert exchanged == ["abc123"]
    assert flow.state is FlowState.SETTLED_OK
