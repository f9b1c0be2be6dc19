# FastAPI application entry point that initialises
# the app, seeds the demo users and registers the routes.

import time
import logging
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from totp_login.core.config import settings
from totp_login.routes.verify_totp import (
    router as verify_router,
    sessions,
    users,
    totp,
    service,
    render_page,
    respond,
)
from totp_login.services.renderer import TemplateRenderError
from totp_login.services.totp_service import provisioning_uri
from totp_login.services.verification import SESSION_EXPIRED

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)
app.include_router(verify_router)


def seed_demo_users() -> None:
    for username, password in settings.demo_users.items():
        if users.exists(username):
            continue
        try:
            users.add_user(username, password)
        except ValueError as e:
            logger.warning(f"Demo user {username} skipped: {e}")
            continue
        secret = totp.enroll(username)
        logger.info(f"Demo user {username}: {provisioning_uri(secret, username, settings.APP_NAME)}")

seed_demo_users()


@app.exception_handler(TemplateRenderError)
async def template_render_error(request: Request, exc: TemplateRenderError):
    # Never redirect here, a broken template would loop
    logger.error(f"{exc} while serving {request.url.path}", exc_info=exc.cause)
    return PlainTextResponse("Internal Server Error", status_code=500)


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/login")
def login_page(si: str | None = None):
    # The one-shot error message is read and cleared here
    err_msg = ""
    session = sessions.get(si)
    if session is not None:
        err_msg = session.pop("errMsg", "")

    model = {}
    if err_msg:
        model["errMsg"] = err_msg
    return render_page("login.html", model)


@app.get("/troubleshoot-totp")
def troubleshoot_totp_page(si: str | None = None):
    started = time.perf_counter()
    session = sessions.get(si)
    username = session.get_or_default("username", "") if session else ""
    if not username:
        return respond(service.error(SESSION_EXPIRED), "troubleshoot_totp", started)

    return render_page("troubleshootTotp.html", {"key": session.key, "username": username})
