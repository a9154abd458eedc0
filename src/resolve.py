"""Configuration lookup for goauth.

Client id / secret resolution order:
  1. --client-id / --client-secret flags
  2. --secrets-file (Desktop credentials JSON)
  3. GOAUTH_CLIENT_ID / GOAUTH_CLIENT_SECRET (environment or .env)

Implicit secrets file, used only when nothing above supplied a client id:
  1. GOAUTH_SECRETS_FILE environment variable
  2. {platformdirs.user_config_dir("goauth")}/client_secrets.json
"""

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from platformdirs import user_config_dir


def config_dir() -> Path:
    """Return the OS-native goauth config directory."""
    return Path(user_config_dir("goauth"))


def default_secrets_file() -> Path | None:
    """Return an existing implicit secrets file, or None."""
    env = os.environ.get("GOAUTH_SECRETS_FILE")
    if env:
        path = Path(env).expanduser()
        return path if path.exists() else None
    path = config_dir() / "client_secrets.json"
    return path if path.exists() else None


def env_credentials() -> tuple[str, str]:
    """Return (client_id, client_secret) from the environment, loading .env first."""
    load_dotenv(find_dotenv(usecwd=True))
    return (
        os.environ.get("GOAUTH_CLIENT_ID", ""),
        os.environ.get("GOAUTH_CLIENT_SECRET", ""),
    )
