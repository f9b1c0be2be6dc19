import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Union
from pydantic import BaseModel
from totp_login.services.sessions import SessionStore
from totp_login.services.totp_service import Totp, TotpData, calculate_code
from totp_login.services.users import UserStore

"""VerificationService: decides what happens after the user submits username/password"""


logger = logging.getLogger(__name__)

SESSION_EXPIRED = "Your session has expired; please log in again."
MISSING_USERNAME = "You need to type in your username."
UNKNOWN_USERNAME = "That username does not exist."
MISSING_PASSWORD = "Please choose a password."
WRONG_PASSWORD = "You did not enter the right password."


@dataclass(frozen=True)
class NewSession:
    """A session that still has to be created, with the fields to put on it."""
    ttl_seconds: int
    fields: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ExistingSession:
    """Snapshot of a session resumed from the store."""
    key: str
    fields: Mapping[str, str] = field(default_factory=dict)


SessionRef = Union[NewSession, ExistingSession]


@dataclass(frozen=True)
class RenderVerifyPage:
    session: SessionRef
    totp_data: TotpData


@dataclass(frozen=True)
class RedirectLockout:
    session: SessionRef


@dataclass(frozen=True)
class RedirectError:
    message: str
    session: NewSession


Outcome = Union[RenderVerifyPage, RedirectLockout, RedirectError]


class VerifyPageModel(BaseModel):
    key: str
    errMsg: Optional[str] = None
    correctTotpCode: Optional[str] = None


class VerificationService:
    def __init__(
        self,
        users: UserStore,
        sessions: SessionStore,
        totp: Totp,
        error_ttl_seconds: int,
        login_ttl_seconds: int,
        expose_correct_code: bool = False,
    ):
        self.users = users
        self.sessions = sessions
        self.totp = totp
        self.error_ttl_seconds = error_ttl_seconds
        self.login_ttl_seconds = login_ttl_seconds
        self.expose_correct_code = expose_correct_code

    def error(self, message: str) -> RedirectError:
        """
        Describes a fresh short-lived session whose only job is carrying
        `message` across the redirect to the login page.
        """
        return RedirectError(
            message=message,
            session=NewSession(ttl_seconds=self.error_ttl_seconds, fields={"errMsg": message}),
        )

    def resume(self, session_key: str | None) -> Outcome:
        """
        GET path: the user comes back to the verify page, normally after a wrong code.
        """
        session = self.sessions.get(session_key)
        username = ""
        if session is not None:
            username = session.get_or_default("username", "")

        if not username:
            logger.warning(f"Resume failed: session={session_key} missing or expired")
            return self.error(SESSION_EXPIRED)

        snapshot = ExistingSession(key=session.key, fields=dict(session.fields))
        return self._after_totp_check(username, snapshot)

    def submit(self, username: str | None, password: str | None) -> Outcome:
        """
        POST path: the login form was submitted.
        """
        if not username:
            return self.error(MISSING_USERNAME)

        # Username existence is disclosed on purpose. The signup form already
        # reveals which names are taken, so a vague message protects nothing.
        if not self.users.exists(username):
            logger.warning(f"Login failed: unknown username={username}")
            return self.error(UNKNOWN_USERNAME)

        if not password:
            return self.error(MISSING_PASSWORD)

        # No rate limiting here; bcrypt's cost is the only brake on guessing.
        if not self.users.verify_password(username, password):
            logger.warning(f"Login failed: wrong password for username={username}")
            return self.error(WRONG_PASSWORD)

        session = NewSession(ttl_seconds=self.login_ttl_seconds, fields={"username": username})
        return self._after_totp_check(username, session)

    def _after_totp_check(self, username: str, session: SessionRef) -> Outcome:
        totp_data = self.totp.start_check(username)
        if totp_data.locked_out:
            logger.info(f"TOTP locked out: username={username}")
            return RedirectLockout(session=session)
        return RenderVerifyPage(session=session, totp_data=totp_data)

    def commit(self, session: SessionRef) -> str:
        """
        Applies the session effect of an outcome and returns the session key.
        """
        if isinstance(session, ExistingSession):
            return session.key

        created = self.sessions.create(session.ttl_seconds)
        for name, value in session.fields.items():
            created.put(name, value)
        return created.key

    def page_model(self, key: str, outcome: RenderVerifyPage) -> VerifyPageModel:
        # errMsg is only read here; the page that consumes it clears it
        err_msg = outcome.session.fields.get("errMsg", "") or None
        correct_code = None
        if self.expose_correct_code:
            correct_code = calculate_code(outcome.totp_data.secret, 0)
        return VerifyPageModel(key=key, errMsg=err_msg, correctTotpCode=correct_code)
