# In-memory session management for the login flow
# (creation with a TTL, lookup, lazy expiry).


import time
import secrets
import threading
from dataclasses import dataclass, field

@dataclass
class Session:
    key: str
    created_at: float
    expires_at: float
    fields: dict[str, str] = field(default_factory=dict)

    def get_or_default(self, name: str, default: str) -> str:
        return self.fields.get(name, default)

    def put(self, name: str, value: str) -> None:
        self.fields[name] = value

    def pop(self, name: str, default: str) -> str:
        # Read-and-clear, used for one-shot messages
        return self.fields.pop(name, default)

class SessionStore:
    def __init__(self):
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def _now(self) -> float:
        return time.time()

    def _cleanup(self) -> None:
        now = self._now()
        expired = [k for k, s in self._sessions.items() if s.expires_at <= now]
        for k in expired:
            del self._sessions[k]

    def create(self, ttl_seconds: int) -> Session:
        now = self._now()
        with self._lock:
            self._cleanup()
            key = secrets.token_urlsafe(32)
            while key in self._sessions:
                key = secrets.token_urlsafe(32)
            session = Session(key=key, created_at=now, expires_at=now + ttl_seconds)
            self._sessions[key] = session
            return session

    def get(self, key: str | None) -> Session | None:
        if not key:
            return None
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                return None
            if session.expires_at <= self._now():
                del self._sessions[key]
                return None
            return session

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
