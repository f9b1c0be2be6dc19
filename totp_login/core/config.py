# Centralised application configuration
# (environment variables, session lifetimes, lockout limits).

import os
class Settings:
    APP_NAME = "TOTP Login"
    ERROR_SESSION_TTL_SECONDS = int(os.getenv("ERROR_SESSION_TTL_SECONDS", "1800")) # 30 Minutes
    LOGIN_SESSION_TTL_SECONDS = int(os.getenv("LOGIN_SESSION_TTL_SECONDS", "600")) # 10 Minutes
    TOTP_MAX_FAILURES = int(os.getenv("TOTP_MAX_FAILURES", "5"))
    TOTP_LOCKOUT_SECONDS = int(os.getenv("TOTP_LOCKOUT_SECONDS", "900"))
    # Demo only: shows the expected code on the verify page
    EXPOSE_CORRECT_TOTP_CODE = os.getenv("EXPOSE_CORRECT_TOTP_CODE", "false").lower() == "true"
    AUDIT_LOG_FILE = os.getenv("AUDIT_LOG_FILE", "login_audit.csv")
    DEMO_USERS = os.getenv("DEMO_USERS", "alice:password123,bob:securepass")

    @property
    def demo_users(self) -> dict[str, str]:
        users = {}
        for entry in self.DEMO_USERS.split(","):
            if ":" not in entry:
                continue
            username, password = entry.split(":", 1)
            users[username.strip()] = password
        return users

settings = Settings()
