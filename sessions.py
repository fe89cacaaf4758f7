from __future__ import annotations

import secrets
import string
import threading
from typing import Optional, Set

TOKEN_ALPHABET = string.ascii_letters + string.digits
DEFAULT_TOKEN_LENGTH = 32


class SessionRegistry:
    """In-memory set of admin session tokens.

    Tokens live until revoked or until the process exits. Expiry is left to
    the cookie max-age.
    """

    def __init__(self, token_length: int = DEFAULT_TOKEN_LENGTH) -> None:
        if token_length <= 0:
            token_length = DEFAULT_TOKEN_LENGTH
        self.token_length = token_length
        self._tokens: Set[str] = set()
        self._lock = threading.Lock()

    def issue(self) -> str:
        token = "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(self.token_length))
        with self._lock:
            self._tokens.add(token)
        return token

    def is_valid(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return token in self._tokens

    def revoke(self, token: Optional[str]) -> None:
        if not token:
            return
        with self._lock:
            self._tokens.discard(token)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
