import csv
import time
import os
import hashlib
import threading
from totp_login.core.config import settings

HEADER = ["timestamp", "event_type", "session_ref", "outcome", "latency_ms"]

_lock = threading.Lock()

def session_ref(session_id: str) -> str:
    # Session keys are bearer credentials, only a digest prefix is written
    return hashlib.sha256(session_id.encode("utf-8")).hexdigest()[:16]

def log_event(event_type: str, session_id: str, outcome: str, latency_ms: int = 0):
    # Empty AUDIT_LOG_FILE turns the audit trail off
    log_file = settings.AUDIT_LOG_FILE
    if not log_file:
        return

    with _lock:
        write_header = not os.path.exists(log_file)
        with open(log_file, "a", newline="") as f:
            writer = csv.writer(f)
            if write_header:
                writer.writerow(HEADER)
            writer.writerow([time.time(), event_type, session_ref(session_id), outcome, latency_ms])
