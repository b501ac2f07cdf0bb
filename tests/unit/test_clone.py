"""Tests for clone-command composition and token validation."""

import pytest

from mj_clone.clone import (
    InvalidRepoUrlError,
    InvalidTokenError,
    make_clone_command,
    make_clone_url,
    mask_token,
    validate_token,
)

PREFIXES = ["ghp_", "gho_"]


class TestValidateToken:

    @pytest.mark.parametrize("token", ["ghp_1234567890abcdef", "gho_abc"])
    def test_accepts_known_prefixes(self, token: str) -> None:
        validate_token(token, PREFIXES)

    @pytest.mark.parametrize("token", ["", "github_pat_x", "ghs_abc", " ghp_abc"])
    def test_rejects_other_tokens(self, token: str) -> None:
        with pytest.raises(InvalidTokenError, match="ghp_"):
            validate_token(token, PREFIXES)

    def test_invalid_token_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            validate_token("nope", PREFIXES)


class TestMakeCloneUrl:

    def test_inserts_token_before_host(self) -> None:
        url = make_clone_url("https://github.com/owner/repo.git", "ghp_123")
        assert url == "https://ghp_123@github.com/owner/repo.git"

    def test_only_first_host_occurrence_replaced(self) -> None:
        url = make_clone_url("https://github.com/owner/github.com.git", "ghp_1")
        assert url == "https://ghp_1@github.com/owner/github.com.git"

    def test_custom_host(self) -> None:
        url = make_clone_url("https://git.example.com/o/r", "tok", host="git.example.com")
        assert url == "https://tok@git.example.com/o/r"

    def test_rejects_other_hosts(self) -> None:
        with pytest.raises(InvalidRepoUrlError):
            make_clone_url("https://gitlab.com/owner/repo.git", "ghp_123")

    def test_clone_command(self) -> None:
        cmd = make_clone_command("https://github.com/owner/repo", "ghp_123")
        assert cmd == "git clone https://ghp_123@github.com/owner/repo"


class TestMaskToken:

    def test_keeps_prefix_visible(self) -> None:
        assert mask_token("ghp_123456") == "ghp_******"

    def test_short_token_fully_hidden(self) -> None:
        assert mask_token("abc") == "***"
