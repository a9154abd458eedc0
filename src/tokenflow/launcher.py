"""Wire the loopback listener, the OAuth client and the flow handle together."""

from typing import Any, Callable

from google_auth_oauthlib.flow import Flow

from tokenflow.flow import AuthorizationFlow
from tokenflow.server import DEFAULT_PORT, HOST, LoopbackServer

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"

ClientFactory = Callable[[str, str, list[str], str], Any]


def build_oauth_client(
    client_id: str, client_secret: str, scopes: list[str], redirect_uri: str
) -> Flow:
    """Build a Desktop ("installed") OAuth client redirecting to ``redirect_uri``."""
    config = {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": [redirect_uri],
        }
    }
    return Flow.from_client_config(config, scopes=scopes, redirect_uri=redirect_uri)


def _scope_list(scopes: str | list[str]) -> list[str]:
    if isinstance(scopes, str):
        return [scopes]
    return list(scopes)


async def launch(
    client_id: str,
    client_secret: str,
    scopes: str | list[str],
    *,
    start_port: int = DEFAULT_PORT,
    client_factory: ClientFactory = build_oauth_client,
) -> AuthorizationFlow:
    """Bind a listener, build the authorization URL and return a READY flow."""
    flow = AuthorizationFlow("")
    server = LoopbackServer(flow, start_port)
    port = await server.listen()
    try:
        redirect_uri = f"http://{HOST}:{port}"
        client = client_factory(
            client_id, client_secret, _scope_list(scopes), redirect_uri
        )
        authorize_url, _state = client.authorization_url(
            access_type="offline",
            include_granted_scopes="true",
        )
    except Exception:
        server.close()
        raise
    flow.on_cancel = server.close
    flow.begin(client, authorize_url)
    return flow


async def generate_refresh_token(
    client_id: str, client_secret: str, scopes: str | list[str]
) -> AuthorizationFlow:
    """Start a loopback authorization flow on the first free port from 8091."""
    return await launch(client_id, client_secret, scopes)
