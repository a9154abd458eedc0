"""Generate an OAuth refresh token through a local loopback redirect.

Usage:
  goauth get-token --scope SCOPE [--scope SCOPE ...] -c client_secrets.json
  goauth get-token --scope SCOPE --client-id ID --client-secret SECRET
"""

import argparse
import asyncio
import sys
import webbrowser
from pathlib import Path
from typing import NoReturn

import resolve
from client_secrets import load_client_secrets
from tokenflow import GoAuthError, generate_refresh_token

EXAMPLE_SCOPE = "https://www.googleapis.com/auth/adwords"


def _fail(message: str) -> NoReturn:
    print(message, file=sys.stderr)
    raise SystemExit(1)


def _credentials_from_file(path: Path) -> tuple[str, str]:
    secrets = load_client_secrets(path)
    if secrets.installed is None:
        _fail(
            "The secrets file provided looks to be for a non Desktop credentials,"
            " please make sure you're using credentials of Desktop type"
            " - https://console.cloud.google.com/apis/credentials"
        )
    return secrets.installed.client_id, secrets.installed.client_secret


def resolve_credentials(args: argparse.Namespace) -> tuple[str, str]:
    """Pick client id/secret from flags, secrets file or environment."""
    if args.secrets_file:
        path = Path(args.secrets_file).expanduser()
        if not path.exists():
            _fail("The provided secrets file does not exist")
        return _credentials_from_file(path)

    client_id = args.client_id or ""
    client_secret = args.client_secret or ""
    if not client_id and not client_secret:
        client_id, client_secret = resolve.env_credentials()
        if not client_id:
            implicit = resolve.default_secrets_file()
            if implicit is not None:
                print(f"Using secrets file: {implicit}")
                return _credentials_from_file(implicit)

    if not client_id:
        _fail(
            "Please specify client id (either in place via --client-id"
            " or as credentials file via --secrets-file)"
        )
    if not client_secret:
        _fail(
            "Please specify client secret (either in place via --client-secret"
            " or as credentials file via --secrets-file)"
        )
    return client_id, client_secret


async def run_flow(
    client_id: str,
    client_secret: str,
    scopes: list[str],
    *,
    open_browser: bool = False,
    timeout: float | None = None,
) -> str:
    flow = await generate_refresh_token(client_id, client_secret, scopes)
    print("Please navigate to the following url to authenticate:")
    print(flow.authorize_url)
    if open_browser:
        webbrowser.open(flow.authorize_url)
    try:
        return await asyncio.wait_for(flow.get_token(), timeout=timeout)
    except TimeoutError:
        flow.cancel(f"No redirect received within {timeout:g}s")
        raise


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="goauth get-token", description="Generate a refresh token"
    )
    parser.add_argument(
        "-c",
        "--secrets-file",
        "--client-secrets-path",
        dest="secrets_file",
        help="OAuth credentials file path",
    )
    parser.add_argument("--client-id", help="OAuth client id")
    parser.add_argument("--client-secret", help="OAuth client secret")
    parser.add_argument(
        "--scope",
        nargs="+",
        action="extend",
        default=[],
        help="OAuth scope(s) to request access to",
    )
    parser.add_argument(
        "--open", action="store_true", help="Open the URL in the default browser"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Give up if no redirect arrives within SECONDS",
    )
    args = parser.parse_args()

    if not args.scope:
        _fail(
            "Please specify at least one scope"
            f' (e.g. "--scope {EXAMPLE_SCOPE}")'
        )

    client_id, client_secret = resolve_credentials(args)

    try:
        token = asyncio.run(
            run_flow(
                client_id,
                client_secret,
                args.scope,
                open_browser=args.open,
                timeout=args.timeout,
            )
        )
    except TimeoutError:
        _fail(f"Error: no redirect received within {args.timeout:g}s")
    except GoAuthError as exc:
        _fail(f"Error: {exc}")

    print("Your refresh token:")
    print(token)


if __name__ == "__main__":
    main()
