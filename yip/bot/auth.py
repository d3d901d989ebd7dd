from __future__ import annotations

import hmac
import threading

from yip.errors import AuthorizationDenied

NOT_AUTHENTICATED_MESSAGE = "You are not authenticated.\nPlease use\n\n/login PASSWORD\n\nto authenticate"


class CredentialGate:
    """Shared-secret login, one flag per chat identity.

    Sessions never expire; they live until the process restarts.
    """

    def __init__(self, secret: str) -> None:
        self._secret = secret
        self._lock = threading.Lock()
        self._sessions: dict[int, bool] = {}

    def authenticate(self, identity: int, supplied_secret: str) -> bool:
        if not self._secret or not supplied_secret:
            return False
        if not hmac.compare_digest(supplied_secret.encode("utf-8"), self._secret.encode("utf-8")):
            return False
        with self._lock:
            self._sessions[identity] = True
        return True

    def is_authenticated(self, identity: int) -> bool:
        with self._lock:
            return self._sessions.get(identity, False)

    def require_authenticated(self, identity: int) -> None:
        if not self.is_authenticated(identity):
            raise AuthorizationDenied(NOT_AUTHENTICATED_MESSAGE)

    @property
    def session_count(self) -> int:
        with self._lock:
            return len(self._sessions)
