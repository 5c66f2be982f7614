from __future__ import annotations

import logging
from datetime import date

from fastapi import Depends, FastAPI, Form, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware

from boothfinance import berichte, routes_booth, routes_fee, routes_kas
from boothfinance.config import settings as app_settings
from boothfinance.http import ctx, templates
from boothfinance.models.base import get_db
from boothfinance.models.user import ROLE_KARYAWAN, ROLE_OWNER
from boothfinance.services import cache, ledger
from boothfinance.services.auth import (
    authenticate_user,
    get_current_user,
    login_user,
    logout_user,
    register_user,
)
from boothfinance.services.db_init import init_db
from boothfinance.services.errors import BackendError, BoothError, ErrorCode
from boothfinance.services.reports import dashboard_stats

logging.basicConfig(
    level=app_settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("boothfinance.app")

# ------------------------------------------------------------------------------
# App / Middleware
# ------------------------------------------------------------------------------
APP_VERSION = "0.1.0"
app = FastAPI(title=app_settings.APP_NAME, version=APP_VERSION)
app.add_middleware(SessionMiddleware, secret_key=app_settings.SECRET_KEY, session_cookie="booth_session")

app.include_router(routes_booth.router)
app.include_router(routes_kas.router)
app.include_router(routes_fee.router)
app.include_router(berichte.router)


@app.on_event("startup")
def _startup():
    init_db(dev_seed=app_settings.DEV_SEED)

# ------------------------------------------------------------------------------
# Fehler -> JSON
# ------------------------------------------------------------------------------
ERROR_STATUS = {
    ErrorCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EMPTY_PERIOD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ITEM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DUPLICATE_SESSION: status.HTTP_409_CONFLICT,
    ErrorCode.SESSION_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.PERIOD_OVERLAP: status.HTTP_409_CONFLICT,
    ErrorCode.BACKEND: status.HTTP_502_BAD_GATEWAY,
}


@app.exception_handler(BoothError)
async def booth_error_handler(request: Request, exc: BoothError):
    if isinstance(exc, BackendError):
        logger.error("backend error on %s %s: %s", request.method, request.url.path, exc.detail)
    else:
        logger.info("rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        {"ok": False, "error": exc.message, "code": exc.code.value},
        status_code=ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST),
    )

# ------------------------------------------------------------------------------
# Login / Register
# ------------------------------------------------------------------------------
@app.get("/login", response_class=HTMLResponse)
def login_form(request: Request):
    return templates.TemplateResponse(request, "login.html", ctx(request, extra={"error": None}))


@app.post("/login", response_class=HTMLResponse)
def login_post(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, email, password)
    if user is None:
        logger.info("login failed for %s", email.strip().lower())
        return templates.TemplateResponse(
            request, "login.html", ctx(request, extra={"error": "Email atau password salah"}),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    login_user(request, user)
    logger.info("login %s (%s)", user.email, user.role)
    target = "/" if user.role != ROLE_KARYAWAN else "/api/booth/today"
    return RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)


@app.post("/logout")
def logout(request: Request):
    logout_user(request)
    return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)


@app.post("/register", response_class=HTMLResponse)
def register_post(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    name: str = Form(...),
    db: Session = Depends(get_db),
):
    # Selbstregistrierung immer als Karyawan
    try:
        user = register_user(db, email, password, name, role=ROLE_KARYAWAN)
    except BoothError as e:
        return templates.TemplateResponse(
            request, "login.html", ctx(request, extra={"error": e.message, "register": True}),
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    logger.info("registered %s", user.email)
    return RedirectResponse("/login?registered=1", status_code=status.HTTP_303_SEE_OTHER)

# ------------------------------------------------------------------------------
# Dashboard
# ------------------------------------------------------------------------------
@app.get("/", response_class=HTMLResponse)
def dashboard(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if user is None:
        return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    if not user.has_role(ROLE_OWNER):
        return RedirectResponse("/api/booth/today", status_code=status.HTTP_303_SEE_OTHER)
    today = date.today()
    stats = cache.query_cache.get_or_load((cache.DASHBOARD, today), lambda: dashboard_stats(db, today).as_json())
    recent = ledger.recent_entries(db, limit=10)
    return templates.TemplateResponse(request, "dashboard.html", ctx(request, user, {"stats": stats, "recent": recent}))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=False, log_level="info")
