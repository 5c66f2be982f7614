from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from boothfinance.config import settings as app_settings
from boothfinance.http import as_int, ok, read_json
from boothfinance.models.base import get_db
from boothfinance.models.user import User
from boothfinance.services import cache, sessions
from boothfinance.services.auth import require_owner, require_staff
from boothfinance.services.errors import SessionNotFoundError, ValidationError
from boothfinance.services.money import to_json_number
from boothfinance.services.period_closing import closing_json, list_period_closings

router = APIRouter(tags=["Booth"])


def _stocks(payload: dict) -> dict:
    # {"stocks": {"<item_id>": qty, ...}} oder [{"item_id":..,"qty_open":..}]
    raw = payload.get("stocks")
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, list):
        try:
            return {r["item_id"]: r.get("qty_open", 0) for r in raw}
        except (KeyError, TypeError):
            raise ValidationError("Format stok tidak valid")
    raise ValidationError("Mohon isi minimal 1 item")


def _target_session(db: Session, payload: dict):
    # ohne session_id: Session von heute
    if payload.get("session_id") is not None:
        return sessions.get_session(db, as_int(payload["session_id"], "session_id"))
    s = sessions.get_session_for_date(db, date.today())
    if s is None:
        raise SessionNotFoundError(date.today())
    return s


@router.get("/api/booth/today")
def booth_today(db: Session = Depends(get_db), user: User = Depends(require_staff)):
    s = sessions.get_session_for_date(db, date.today())
    return ok({"state": s.status if s else sessions.STATE_NONE,
               "session": sessions.session_json(s, with_items=True) if s else None})


@router.post("/api/booth/open")
async def booth_open(request: Request, db: Session = Depends(get_db), user: User = Depends(require_owner)):
    payload = await read_json(request)
    s = sessions.open_session(db, _stocks(payload), opened_by=user.id)
    return ok({"session": sessions.session_json(s, with_items=True)}, status_code=201)


@router.post("/api/booth/estimate")
async def booth_estimate(request: Request, db: Session = Depends(get_db), user: User = Depends(require_staff)):
    payload = await read_json(request)
    s = _target_session(db, payload)
    qty_close = sessions.clean_qty_close(s, payload.get("qty_close"))
    return ok({
        "estimated_revenue": to_json_number(sessions.estimate_revenue(s, qty_close)),
        "estimated_fee": to_json_number(sessions.compute_session_fee(s, qty_close)),
        "items": sessions.session_lines(s, qty_close),
    })


@router.post("/api/booth/close")
async def booth_close(request: Request, db: Session = Depends(get_db), user: User = Depends(require_staff)):
    payload = await read_json(request)
    s = sessions.close_session(
        db,
        _target_session(db, payload).id,
        total_sales=payload.get("total_sales"),
        qty_close=payload.get("qty_close") or {},
        closed_by=user.id,
        notes=payload.get("notes"),
        use_estimate=bool(payload.get("use_estimate")),
    )
    return ok({"session": sessions.session_json(s, with_items=True)})


@router.get("/api/booth/history")
def booth_history(db: Session = Depends(get_db), user: User = Depends(require_owner)):
    def _load():
        rows = sessions.list_sessions(db)
        closed = [s for s in rows if s.status == "CLOSED"]
        open_s = next((s for s in rows if s.status == "OPEN"), None)
        return {
            "total_sales": to_json_number(sum(s.total_sales_input or 0 for s in closed)),
            "open_session": sessions.session_json(open_s) if open_s else None,
            "sessions": [sessions.session_json(s) for s in rows],
        }
    return ok(cache.query_cache.get_or_load((cache.BOOTH_SESSIONS, "history"), _load))


@router.get("/api/booth/{session_id}")
def booth_detail(session_id: int, db: Session = Depends(get_db), user: User = Depends(require_owner)):
    return ok({"session": sessions.session_json(sessions.get_session(db, session_id), with_items=True)})


@router.get("/api/karyawan/riwayat")
def karyawan_history(db: Session = Depends(get_db), user: User = Depends(require_staff)):
    since = date.today() - timedelta(days=app_settings.KARYAWAN_HISTORY_DAYS)
    closed = sessions.list_closed_sessions_since(db, since)
    periods = list_period_closings(db, limit=app_settings.KARYAWAN_PERIOD_LIMIT)
    return ok({
        "sessions": [sessions.session_json(s) for s in closed],
        "periods": [closing_json(p) for p in periods],
        "total_profit_share": to_json_number(sum(p.karyawan_share_amount or 0 for p in periods)),
    })
