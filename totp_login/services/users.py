"""
UserStore: credential storage and password verification using bcrypt.
"""

import logging
import threading
import bcrypt
from totp_login.db import InMemoryDB

logger = logging.getLogger(__name__)

# bcrypt refuses input longer than this
MAX_PASSWORD_BYTES = 72

class UserStore:
    def __init__(self, db: InMemoryDB):
        self._db = db
        self._lock = threading.Lock()

    def add_user(self, username: str, password: str) -> None:
        """
        Hash the password with a fresh salt and store it under username.
        Raises ValueError for passwords bcrypt cannot hash.
        """
        pwd_bytes = password.encode("utf-8")
        if len(pwd_bytes) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password for {username} is longer than {MAX_PASSWORD_BYTES} bytes")
        hashed = bcrypt.hashpw(pwd_bytes, bcrypt.gensalt())
        with self._lock:
            self._db.users[username] = hashed.decode("utf-8")
        logger.info(f"User stored: username={username}")

    def exists(self, username: str) -> bool:
        return username in self._db.users

    def verify_password(self, username: str, password: str) -> bool:
        hashed = self._db.users.get(username)
        if hashed is None:
            return False

        pwd_bytes = password.encode("utf-8")
        if len(pwd_bytes) > MAX_PASSWORD_BYTES:
            # add_user never stores such a password, so it cannot match
            return False

        try:
            return bcrypt.checkpw(pwd_bytes, hashed.encode("utf-8"))
        except ValueError:
            # Corrupt or foreign hash format
            logger.error(f"Unreadable password hash for username={username}")
            return False
