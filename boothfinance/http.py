from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

from boothfinance.config import settings as app_settings
from boothfinance.services.errors import ValidationError
from boothfinance.services.money import format_date, format_rupiah

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.filters["rupiah"] = format_rupiah
templates.env.filters["tanggal"] = format_date


async def read_json(request: Request) -> dict:
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Body JSON tidak valid")
    if not isinstance(payload, dict):
        raise ValidationError("Body JSON harus berupa object")
    return payload


def parse_day(s: Optional[str], default: Optional[date] = None) -> date:
    if not s:
        if default is None:
            raise ValidationError("Tanggal wajib diisi")
        return default
    if not isinstance(s, str):
        raise ValidationError(f"Format tanggal tidak valid: {s!r}")
    for fmt in ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(s.strip(), fmt).date()
        except ValueError:
            pass
    raise ValidationError(f"Format tanggal tidak valid: {s}")


def ok(data: Optional[dict] = None, status_code: int = 200) -> JSONResponse:
    body = {"ok": True}
    if data:
        body.update(data)
    return JSONResponse(body, status_code=status_code)


def ctx(request: Request, user=None, extra: Optional[dict] = None) -> dict:
    base = {
        "request": request,
        "APP_NAME": app_settings.APP_NAME,
        "BOOTH_NAME": app_settings.BOOTH_NAME,
        "user": user,
        "nav": app_settings.get_nav_items(user.role) if user else [],
    }
    return base if not extra else base | extra


def as_int(value, what: str = "angka") -> int:
    # 2.9 oder true sind keine ids
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{what} tidak valid")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{what} tidak valid")
