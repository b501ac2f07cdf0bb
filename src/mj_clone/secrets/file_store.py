"""File-backed token store.

Each token lives in its own file, ``<root>/<safe-key>.token``, holding the
base64 text of the UTF-8 encoded value. Base64 is obfuscation, not
encryption: the only protection is the owner-only file mode applied on
POSIX systems.

The directory listing is the only index. Nothing is cached in memory, so
every call goes back to the filesystem.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import os
import pathlib
import re
from collections.abc import Mapping

from mj_clone.secrets.store import StorageError, TokenStore

logger = logging.getLogger(__name__)

TOKEN_SUFFIX = ".token"
DEFAULT_DIR_NAME = ".deno_tokens"
TOKEN_FILE_MODE = 0o600

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_key(key: str) -> str:
    """Replace every character outside ``[A-Za-z0-9_-]`` with ``_``.

    Keys that differ only in unsafe characters (``"a/b"`` and ``"a_b"``)
    map to the same file and overwrite each other.
    """
    return _UNSAFE_CHARS.sub("_", key)


def resolve_home_dir(environ: Mapping[str, str] | None = None) -> pathlib.Path:
    """Return the home directory from ``HOME`` or ``USERPROFILE``, else ``.``."""
    env = os.environ if environ is None else environ
    return pathlib.Path(env.get("HOME") or env.get("USERPROFILE") or ".")


def encode_token(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def decode_token(text: str) -> str:
    """Reverse :func:`encode_token`. Raises ``ValueError`` on malformed text.

    Payloads that are not valid UTF-8 are read as Latin-1, the byte-per-char
    form older token files were written in.
    """
    raw = base64.b64decode(text.strip(), validate=True)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


class FileTokenStore(TokenStore):
    """Stores tokens as one base64 text file per key.

    Parameters
    ----------
    root:
        Directory holding the token files. Defaults to ``<home>/<dir_name>``.
    home:
        Home directory used when *root* is not given. Resolved from the
        environment when ``None``.
    dir_name:
        Name of the token directory inside *home*.
    """

    def __init__(
        self,
        root: pathlib.Path | str | None = None,
        *,
        home: pathlib.Path | str | None = None,
        dir_name: str = DEFAULT_DIR_NAME,
    ) -> None:
        if root is None:
            base = pathlib.Path(home) if home is not None else resolve_home_dir()
            root = base / dir_name
        self._root = pathlib.Path(root)

    @property
    def root(self) -> pathlib.Path:
        return self._root

    def token_path(self, key: str) -> pathlib.Path:
        """Return the file that holds the token for *key*."""
        return self._root / f"{sanitize_key(key)}{TOKEN_SUFFIX}"

    # ------------------------------------------------------------------
    # Blocking helpers (run via asyncio.to_thread)
    # ------------------------------------------------------------------

    def _write(self, path: pathlib.Path, encoded: str) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, TOKEN_FILE_MODE)
        with os.fdopen(fd, "w", encoding="ascii") as fh:
            fh.write(encoded)
        if os.name == "nt":
            return
        try:
            os.chmod(path, TOKEN_FILE_MODE)
        except NotImplementedError:
            logger.debug("chmod unsupported, leaving default mode on %s", path)

    def _token_files(self) -> list[str]:
        with os.scandir(self._root) as entries:
            return [
                entry.name
                for entry in entries
                if entry.name.endswith(TOKEN_SUFFIX)
                and entry.is_file(follow_symlinks=False)
            ]

    # ------------------------------------------------------------------
    # TokenStore interface
    # ------------------------------------------------------------------

    async def store(self, key: str, value: str) -> None:
        path = self.token_path(key)
        try:
            encoded = encode_token(value)
            await asyncio.to_thread(self._write, path, encoded)
        except (OSError, UnicodeEncodeError) as exc:
            raise StorageError(f"Failed to store token '{key}': {exc}") from exc
        logger.debug("Stored token '%s' in %s", key, path)

    async def retrieve(self, key: str) -> str | None:
        path = self.token_path(key)
        try:
            text = await asyncio.to_thread(path.read_text, encoding="ascii")
        except FileNotFoundError:
            logger.info("Token not found: %s", key)
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Failed to retrieve token '{key}': {exc}") from exc

        try:
            return decode_token(text)
        except ValueError as exc:
            raise StorageError(f"Stored token '{key}' is malformed: {exc}") from exc

    async def delete(self, key: str) -> bool:
        path = self.token_path(key)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            logger.info("Token not found for deletion: %s", key)
            return False
        except OSError as exc:
            raise StorageError(f"Failed to delete token '{key}': {exc}") from exc
        logger.info("Token deleted: %s", key)
        return True

    async def exists(self, key: str) -> bool:
        path = self.token_path(key)
        try:
            return await asyncio.to_thread(path.is_file)
        except Exception as exc:
            logger.debug("exists(%s) treated as missing: %s", key, exc)
            return False

    async def list_tokens(self) -> list[str]:
        """Return the safe keys of all stored tokens.

        Keys are returned in their sanitized form; the original key cannot
        be recovered from the filename.
        """
        try:
            names = await asyncio.to_thread(self._token_files)
        except Exception as exc:
            logger.debug("Cannot list tokens in %s: %s", self._root, exc)
            return []
        return [name[: -len(TOKEN_SUFFIX)] for name in names]

    async def clear_all(self) -> int:
        """Delete every token file, continuing past individual failures.

        Returns the number of files actually removed.
        """
        try:
            names = await asyncio.to_thread(self._token_files)
        except Exception as exc:
            logger.debug("Cannot list tokens in %s: %s", self._root, exc)
            return 0

        removed = 0
        for name in names:
            try:
                await asyncio.to_thread((self._root / name).unlink)
            except FileNotFoundError:
                # Removed by someone else since the listing
                continue
            except OSError as exc:
                logger.warning("Failed to remove token file %s: %s", name, exc)
                continue
            removed += 1

        logger.info("Cleared %d tokens", removed)
        return removed
