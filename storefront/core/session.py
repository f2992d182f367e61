"""Anonymous session identity for guest carts"""

import os
import json
import time
import secrets
import logging
import tempfile
from typing import Optional

from .errors import IdentityUnavailable

logger = logging.getLogger(__name__)

_TOKEN_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def generate_session_token() -> str:
    """Create a token like ``cart_1718000000000_k3j9x0q2m1a7c``"""
    suffix = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(13))
    return f"cart_{int(time.time() * 1000)}_{suffix}"


class KeyValueStore:
    """Durable string key-value store interface"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Process-local store, mostly for tests"""

    def __init__(self):
        self.values: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class JsonFileStore(KeyValueStore):
    """
    Key-value store kept in a small JSON file.

    Writes go to a temporary file that replaces the original, so a crash
    mid-write never leaves a truncated file behind. Any I/O or decoding
    problem is reported as ``IdentityUnavailable``.
    """

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise IdentityUnavailable(f"Cannot read {self.path}: {e}")
        if not isinstance(data, dict):
            raise IdentityUnavailable(f"Unexpected content in {self.path}")
        return data

    def _save(self, data: dict[str, str]) -> None:
        directory = os.path.dirname(self.path) or "."
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".session-")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise IdentityUnavailable(f"Cannot write {self.path}: {e}")

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class SessionIdentity:
    """
    Owns the guest session token.

    The token is created on first use and stays stable across restarts
    for as long as the durable store keeps it. Nothing else writes the
    token key. When the store is unusable the token lives only in memory
    for this process and ``degraded`` is set; callers never see an error.
    """

    def __init__(self, store: Optional[KeyValueStore], key: str = "cartSessionId"):
        self.store = store
        self.key = key
        self.degraded = store is None
        self._token: Optional[str] = None

    def get_or_create(self) -> str:
        """Return the session token, creating and persisting it if needed"""
        if self.store is None:
            return self._remember(self._token or generate_session_token())

        try:
            token = self.store.get(self.key)
            if not token:
                token = self._token or generate_session_token()
                self.store.set(self.key, token)
                logger.info(f"Created new persistent session ID: {token}")
        except IdentityUnavailable as e:
            self._degrade(e)
            token = self._token or generate_session_token()

        return self._remember(token)

    def rotate(self) -> str:
        """Replace the token with a fresh one"""
        token = generate_session_token()
        if self.store is not None:
            try:
                self.store.set(self.key, token)
            except IdentityUnavailable as e:
                self._degrade(e)
        logger.info(f"Rotated session ID to {token}")
        return self._remember(token)

    def clear(self) -> None:
        """Forget the token; the next call creates a new one"""
        self._token = None
        if self.store is not None:
            try:
                self.store.delete(self.key)
            except IdentityUnavailable as e:
                self._degrade(e)

    def _remember(self, token: str) -> str:
        self._token = token
        return token

    def _degrade(self, error: IdentityUnavailable) -> None:
        if not self.degraded:
            logger.warning(
                f"Session store unavailable ({error}) - guest cart will not "
                f"survive a restart"
            )
        self.degraded = True
