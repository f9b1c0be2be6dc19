import time
import logging
import threading
from dataclasses import dataclass
import pyotp
from totp_login.db import InMemoryDB

"""Totp: per-user TOTP secrets and the failure counter that drives lockout"""


logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class TotpData:
    locked_out: bool
    secret: str  # base32, as pyotp expects


def calculate_code(secret: str, offset: int = 0, for_time: float | None = None) -> str:
    """
    Returns the code for the time window `offset` steps away from for_time (default: now).
    """
    if for_time is None:
        for_time = time.time()
    return pyotp.TOTP(secret).at(for_time, counter_offset=offset)


class Totp:
    def __init__(self, db: InMemoryDB, max_failures: int, lockout_seconds: int):
        self._db = db
        self.max_failures = max_failures
        self.lockout_seconds = lockout_seconds
        self._lock = threading.Lock()

    def _now(self) -> float:
        return time.time()

    def _record(self, username: str) -> dict:
        record = self._db.totp.get(username)
        if record is None:
            raise KeyError(f"No TOTP secret enrolled for {username}")
        return record

    def _is_locked_out(self, record: dict) -> bool:
        if record["failures"] < self.max_failures:
            return False

        last_failure = record["last_failure"] or 0.0
        if self._now() - last_failure >= self.lockout_seconds:
            # Lockout window elapsed, start counting again
            record["failures"] = 0
            record["last_failure"] = None
            return False
        return True

    def enroll(self, username: str, secret: str | None = None) -> str:
        """
        Stores a TOTP secret for the user, generating one if none is given.
        """
        secret = secret or pyotp.random_base32()
        with self._lock:
            self._db.totp[username] = {"secret": secret, "failures": 0, "last_failure": None}
        logger.info(f"TOTP enrolled: username={username}")
        return secret

    def start_check(self, username: str) -> TotpData:
        with self._lock:
            record = self._record(username)
            return TotpData(locked_out=self._is_locked_out(record), secret=record["secret"])

    def finish_check(self, username: str, code: str) -> bool:
        """
        Verifies a submitted code. Failures count towards lockout, a success clears them.
        """
        with self._lock:
            record = self._record(username)
            if self._is_locked_out(record):
                logger.warning(f"TOTP check refused: username={username} locked out")
                return False

            if code and pyotp.TOTP(record["secret"]).verify(code, for_time=self._now(), valid_window=1):
                record["failures"] = 0
                record["last_failure"] = None
                return True

            record["failures"] += 1
            record["last_failure"] = self._now()
            logger.warning(f"TOTP check failed: username={username} failures={record['failures']}")
            return False


def provisioning_uri(secret: str, username: str, issuer: str) -> str:
    """otpauth:// URI for adding the secret to an authenticator app"""
    return pyotp.TOTP(secret).provisioning_uri(name=username, issuer_name=issuer)
