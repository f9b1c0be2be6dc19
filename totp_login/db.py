from typing import Dict

class InMemoryDB:
    def __init__(self):
        # username -> bcrypt password hash
        self.users: Dict[str, str] = {}

        # username -> { "secret": str, "failures": int, "last_failure": Optional[float] }
        self.totp: Dict[str, dict] = {}

    def reset(self) -> None:
        self.users.clear()
        self.totp.clear()

db = InMemoryDB()
