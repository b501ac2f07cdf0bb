"""Token storage."""

from mj_clone.secrets.file_store import FileTokenStore, sanitize_key
from mj_clone.secrets.store import StorageError, TokenStore

__all__ = ["FileTokenStore", "StorageError", "TokenStore", "sanitize_key"]
