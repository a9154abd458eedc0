"""Shared fixtures: a fake OAuth client and a raw HTTP GET against the listener."""

import asyncio
import time
from types import SimpleNamespace
from urllib.parse import urlencode

import pytest


class FakeOAuthClient:
    """Stands in for google_auth_oauthlib.flow.Flow."""

    def __init__(self, client_id, client_secret, scopes, redirect_uri):
        self.client_id = client_id
        self.client_secret = client_secret
        self.scopes = scopes
        self.redirect_uri = redirect_uri
        self.tokens = {"refresh_token": "rt-xyz", "token": "at-123"}
        self.exchange_error: Exception | None = None
        self.exchange_delay = 0.0
        self.exchanged: list[str] = []
        self.auth_params: dict = {}
        self.credentials = None

    def authorization_url(self, **kwargs):
        self.auth_params = kwargs
        query = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "scope": " ".join(self.scopes),
                **kwargs,
            }
        )
        return f"https://accounts.example.com/o/oauth2/auth?{query}", "state-1"

    def fetch_token(self, code):
        self.exchanged.append(code)
        if self.exchange_delay:
            time.sleep(self.exchange_delay)
        if self.exchange_error is not None:
            raise self.exchange_error
        self.credentials = SimpleNamespace(**self.tokens)
        return dict(self.tokens)


@pytest.fixture
def fake_clients():
    """Client factory that records every client it builds."""
    built: list[FakeOAuthClient] = []

    def factory(client_id, client_secret, scopes, redirect_uri):
        client = FakeOAuthClient(client_id, client_secret, scopes, redirect_uri)
        built.append(client)
        return client

    factory.built = built
    return factory


async def http_get(port: int, target: str) -> tuple[str, str]:
    """Send a GET and return (status line, body)."""
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    writer.write(
        f"GET {target} HTTP/1.1\r\nHost: 127.0.0.1:{port}\r\n\r\n".encode()
    )
    await writer.drain()
    raw = await reader.read()
    writer.close()
    head, _, body = raw.decode().partition("\r\n\r\n")
    return head.split("\r\n")[0], body


@pytest.fixture
def get():
    return http_get
