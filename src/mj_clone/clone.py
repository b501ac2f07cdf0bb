"""Build authenticated ``git clone`` commands from a stored token."""

from __future__ import annotations

from collections.abc import Sequence

DEFAULT_HOST = "github.com"


class InvalidTokenError(ValueError):
    """Token does not look like a GitHub token."""


class InvalidRepoUrlError(ValueError):
    """Repository URL does not point at the expected host."""


def validate_token(token: str, prefixes: Sequence[str]) -> None:
    """Raise ``InvalidTokenError`` unless *token* starts with a known prefix."""
    if not token.startswith(tuple(prefixes)):
        raise InvalidTokenError(
            "Invalid token format. GitHub tokens should start with "
            + " or ".join(f"'{p}'" for p in prefixes)
            + "."
        )


def make_clone_url(repo_url: str, token: str, host: str = DEFAULT_HOST) -> str:
    """Insert *token* as the user part in front of the first *host*.

    >>> make_clone_url("https://github.com/o/r.git", "ghp_x")
    'https://ghp_x@github.com/o/r.git'
    """
    if host not in repo_url:
        raise InvalidRepoUrlError(
            f"Invalid repository URL, expected a {host} URL: {repo_url}"
        )
    return repo_url.replace(host, f"{token}@{host}", 1)


def make_clone_command(repo_url: str, token: str, host: str = DEFAULT_HOST) -> str:
    return f"git clone {make_clone_url(repo_url, token, host)}"


def mask_token(token: str, visible: int = 4) -> str:
    """Hide all but the first *visible* characters of *token*."""
    if len(token) <= visible:
        return "*" * len(token)
    return token[:visible] + "*" * (len(token) - visible)
