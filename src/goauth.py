"""Unified CLI dispatcher for goauth.

Usage:
    goauth <subcommand> [args...]
    goauth --scope SCOPE ...      # options alone run get-token
    goauth --help
"""

import importlib
import sys

SUBCOMMANDS: dict[str, tuple[str, str]] = {
    "get-token": ("get_token", "main"),
    "help": ("goauth", "show_help"),
}

COMMANDS = [
    ("get-token --scope SCOPE [-c FILE]", "Generate a refresh token"),
    ("help", "Show this reference"),
]

EXAMPLES = [
    (
        "goauth get-token -c client_secrets.json --scope SCOPE",
        "Generate a refresh token using exported secrets file",
    ),
]

DEFAULT_COMMAND = "get-token"


def main() -> None:
    args = sys.argv[1:]

    if not args or args[0] in ("--help", "-h"):
        show_help()
        return

    cmd = args[0]
    # Options without a subcommand go to the default command
    if cmd.startswith("-"):
        cmd, rest = DEFAULT_COMMAND, args
    else:
        rest = args[1:]

    if cmd not in SUBCOMMANDS:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        print(file=sys.stderr)
        show_help(file=sys.stderr)
        sys.exit(1)

    module_path, func_name = SUBCOMMANDS[cmd]

    # Rewrite sys.argv so the subcommand's argparse sees the right program name
    sys.argv = [cmd, *rest]

    mod = importlib.import_module(module_path)
    fn = getattr(mod, func_name)
    fn()


def show_help(file=None) -> None:
    if file is None:
        file = sys.stdout
    print("goauth commands\n", file=file)
    _print_table(COMMANDS, file)
    print("\nexamples\n", file=file)
    _print_table(EXAMPLES, file)


def _print_table(rows: list[tuple[str, str]], file) -> None:
    width = max(len(name) for name, _ in rows)
    for name, desc in rows:
        print(f"  {name:<{width}}  {desc}", file=file)


if __name__ == "__main__":
    main()
