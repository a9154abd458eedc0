"""Decode the client secrets JSON exported from Google Cloud Console."""

from pathlib import Path

import msgspec


class InstalledClient(msgspec.Struct):
    client_id: str = ""
    client_secret: str = ""
    auth_uri: str = ""
    token_uri: str = ""
    redirect_uris: list[str] = []


class ClientSecrets(msgspec.Struct):
    installed: InstalledClient | None = None
    web: dict | None = None


def load_client_secrets(path: Path) -> ClientSecrets:
    """Parse a secrets file. ``installed`` is None for non-Desktop credentials."""
    try:
        return msgspec.json.decode(path.read_bytes(), type=ClientSecrets)
    except msgspec.DecodeError as exc:
        raise SystemExit(f"Could not parse secrets file {path}: {exc}") from exc
