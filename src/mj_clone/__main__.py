"""mj -- entry point.

Usage::

    mj --set-token <token>
    mj --make <github-repo-url>
    mj --list-tokens | --delete-token KEY | --clear-tokens
    mj --version

The token is kept in the file-backed token store under the configured key
(``github_token`` by default) and spliced into the repository URL to build
an authenticated ``git clone`` command.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from functools import partial
from pathlib import Path

from pydantic import ValidationError

from mj_clone import __version__
from mj_clone.clone import (
    InvalidRepoUrlError,
    InvalidTokenError,
    make_clone_command,
    mask_token,
    validate_token,
)
from mj_clone.config import Settings, load_settings
from mj_clone.secrets.file_store import FileTokenStore
from mj_clone.secrets.store import StorageError, TokenStore

logger = logging.getLogger("mj_clone")


# ---------------------------------------------------------------------------
# Integration seams
# ---------------------------------------------------------------------------


def create_token_store(settings: Settings) -> FileTokenStore:
    """Create the file-backed token store described by *settings*."""
    return FileTokenStore(
        home=settings.storage.home,
        dir_name=settings.storage.dir_name,
    )


# ---------------------------------------------------------------------------
# CLI argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mj",
        description="Store a GitHub token and build authenticated clone commands",
    )
    parser.add_argument(
        "-st", "--set-token",
        metavar="TOKEN",
        default=None,
        help="Set GitHub token for authentication",
    )
    parser.add_argument(
        "-mk", "--make",
        metavar="URL",
        default=None,
        help="Make clone string from github repo url",
    )
    parser.add_argument(
        "--list-tokens",
        action="store_true",
        default=False,
        help="List the keys of all stored tokens",
    )
    parser.add_argument(
        "--delete-token",
        metavar="KEY",
        default=None,
        help="Delete the token stored under KEY",
    )
    parser.add_argument(
        "--clear-tokens",
        action="store_true",
        default=False,
        help="Delete every stored token",
    )
    parser.add_argument(
        "-v", "--version",
        action="store_true",
        default=False,
        help="Show version",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Unrecognised arguments do not abort parsing; they are collected in
    ``args.unknown`` and reported by :func:`run_cli`.

    Parameters
    ----------
    argv:
        Argument list.  Defaults to ``sys.argv[1:]`` when ``None``.
    """
    args, unknown = build_parser().parse_known_args(argv)
    args.unknown = unknown
    return args


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _set_token(store: TokenStore, settings: Settings, token: str) -> int:
    try:
        validate_token(token, settings.github.token_prefixes)
    except InvalidTokenError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    await store.store(settings.github.token_key, token)
    print(f"Token set successfully: {mask_token(token)}")
    return 0


async def _make(store: TokenStore, settings: Settings, repo_url: str) -> int:
    host = settings.github.host
    if host not in repo_url:
        print(
            f"Invalid GitHub repository URL. Please provide a valid {host} URL.",
            file=sys.stderr,
        )
        return 1

    token = await store.retrieve(settings.github.token_key)
    if not token:
        print(
            "No GitHub token found. Please set a token using --set-token.",
            file=sys.stderr,
        )
        return 1

    try:
        print(make_clone_command(repo_url, token, host))
    except InvalidRepoUrlError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return 0


async def _list_tokens(store: TokenStore) -> int:
    for key in sorted(await store.list_tokens()):
        print(key)
    return 0


async def _delete_token(store: TokenStore, key: str) -> int:
    if await store.delete(key):
        print(f"Token deleted: {key}")
        return 0
    print(f"Token not found: {key}", file=sys.stderr)
    return 1


async def _clear_tokens(store: TokenStore) -> int:
    count = await store.clear_all()
    print(f"Cleared {count} tokens")
    return 0


# ---------------------------------------------------------------------------
# Main run coroutine
# ---------------------------------------------------------------------------


async def run_cli(
    args: argparse.Namespace,
    settings: Settings | None = None,
) -> int:
    """Execute the actions requested in *args* and return an exit code.

    Actions run in a fixed order: set-token (which ends the run), make,
    list, delete, clear, version. The first failing action ends the run.
    """
    if settings is None:
        settings = load_settings(Path(args.config) if args.config else None)

    if getattr(args, "unknown", None):
        logger.debug("Unrecognised arguments: %s", args.unknown)
        print("Invalid argument", file=sys.stderr)
        build_parser().print_usage(sys.stderr)

    store = create_token_store(settings)
    acted = False

    try:
        if args.set_token is not None:
            return await _set_token(store, settings, args.set_token)

        steps: list[Callable[[], Awaitable[int]]] = []
        if args.make is not None:
            steps.append(partial(_make, store, settings, args.make))
        if args.list_tokens:
            steps.append(partial(_list_tokens, store))
        if args.delete_token is not None:
            steps.append(partial(_delete_token, store, args.delete_token))
        if args.clear_tokens:
            steps.append(partial(_clear_tokens, store))

        for step in steps:
            acted = True
            code = await step()
            if code != 0:
                return code
    except StorageError as exc:
        logger.error("Token storage failed: %s", exc, exc_info=exc.__cause__)
        print(f"Token storage failed: {exc}", file=sys.stderr)
        return 1

    if args.version:
        print(f"mj version: {__version__}")
        return 0

    if not acted:
        build_parser().print_help()
    return 0


# ---------------------------------------------------------------------------
# Script entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Parse CLI args and run the requested commands."""
    args = parse_args()
    try:
        settings = load_settings(Path(args.config) if args.config else None)
    except ValidationError as exc:
        print(f"Invalid configuration:\n{exc}", file=sys.stderr)
        sys.exit(2)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.logging.level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        code = asyncio.run(run_cli(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    sys.exit(code)


if __name__ == "__main__":
    main()
