# TOTP verification routes: the verify page (GET retry, POST of the
# login form) and confirmation of the code the user typed in.

import time
import logging
from fastapi import APIRouter, Form
from fastapi.responses import RedirectResponse, Response
from totp_login.core.config import settings
from totp_login.db import db
from totp_login.services.logger import log_event
from totp_login.services.renderer import Jinja2Renderer, TemplateRenderer
from totp_login.services.sessions import SessionStore
from totp_login.services.totp_service import Totp
from totp_login.services.users import UserStore
from totp_login.services.verification import (
    SESSION_EXPIRED,
    ExistingSession,
    Outcome,
    RedirectError,
    RedirectLockout,
    VerificationService,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["verify-totp"])
sessions = SessionStore()
users = UserStore(db)
totp = Totp(db, max_failures=settings.TOTP_MAX_FAILURES, lockout_seconds=settings.TOTP_LOCKOUT_SECONDS)
renderer: TemplateRenderer = Jinja2Renderer()
service = VerificationService(
    users,
    sessions,
    totp,
    error_ttl_seconds=settings.ERROR_SESSION_TTL_SECONDS,
    login_ttl_seconds=settings.LOGIN_SESSION_TTL_SECONDS,
    expose_correct_code=settings.EXPOSE_CORRECT_TOTP_CODE,
)

HTML_MEDIA_TYPE = "text/html; charset=UTF-8"
WRONG_CODE = "That code was not correct; please try again."


def render_page(template_name: str, model: dict) -> Response:
    # TemplateRenderError is left to the app-level handler (HTTP 500)
    body = renderer.render(template_name, model)
    return Response(content=body, media_type=HTML_MEDIA_TYPE)


def login_redirect(key: str) -> RedirectResponse:
    return RedirectResponse(f"/login?si={key}", status_code=302)


def lockout_redirect(key: str) -> RedirectResponse:
    return RedirectResponse(f"/troubleshoot-totp?si={key}", status_code=302)


def respond(outcome: Outcome, event_type: str, started: float) -> Response:
    key = service.commit(outcome.session)
    latency_ms = int((time.perf_counter() - started) * 1000)

    if isinstance(outcome, RedirectError):
        log_event(event_type, key, "error", latency_ms)
        return login_redirect(key)

    if isinstance(outcome, RedirectLockout):
        log_event(event_type, key, "lockout", latency_ms)
        return lockout_redirect(key)

    log_event(event_type, key, "render", latency_ms)
    model = service.page_model(key, outcome)
    return render_page("verifyTotp.html", model.model_dump(exclude_none=True))


@router.get("/verify-totp")
def verify_totp_page(si: str | None = None):
    # Normally reached after a wrong code, redirected back here
    started = time.perf_counter()
    return respond(service.resume(si), "verify_totp_get", started)


@router.post("/verify-totp")
def submit_credentials(username: str | None = Form(None), password: str | None = Form(None)):
    # Normally reached by submitting the login form
    started = time.perf_counter()
    return respond(service.submit(username, password), "verify_totp_post", started)


@router.post("/confirm-totp-login")
def confirm_totp_login(si: str | None = Form(None), code: str | None = Form(None)):
    started = time.perf_counter()
    session = sessions.get(si)
    username = session.get_or_default("username", "") if session else ""
    if not username:
        return respond(service.error(SESSION_EXPIRED), "confirm_totp", started)

    if totp.start_check(username).locked_out:
        snapshot = ExistingSession(key=session.key, fields=dict(session.fields))
        return respond(RedirectLockout(session=snapshot), "confirm_totp", started)

    if not totp.finish_check(username, (code or "").strip()):
        session.put("errMsg", WRONG_CODE)
        log_event("confirm_totp", session.key, "wrong_code")
        return RedirectResponse(f"/verify-totp?si={session.key}", status_code=302)

    session.pop("errMsg", "")
    session.put("loggedIn", "true")
    logger.info(f"Login complete: username={username}")
    log_event("confirm_totp", session.key, "logged_in")
    return render_page("loggedIn.html", {"username": username})
