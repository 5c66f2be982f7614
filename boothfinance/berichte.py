# boothfinance/berichte.py
from __future__ import annotations

from datetime import date
from io import BytesIO
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy.orm import Session

from boothfinance.config import settings as app_settings
from boothfinance.http import ctx, ok, parse_day, read_json, templates
from boothfinance.models.base import get_db
from boothfinance.models.user import User
from boothfinance.services import cache, period_closing
from boothfinance.services.auth import require_owner
from boothfinance.services.money import format_date, format_rupiah, to_json_number
from boothfinance.services.reports import PeriodReport, dashboard_stats, period_report

router = APIRouter(tags=["Laporan"])


def _range(start: Optional[str], end: Optional[str]) -> Tuple[date, date]:
    # Standard: laufender Monat bis heute
    today = date.today()
    return parse_day(start, default=today.replace(day=1)), parse_day(end, default=today)


def _cached_report(db: Session, start: date, end: date) -> PeriodReport:
    return cache.query_cache.get_or_load((cache.REPORT, start, end), lambda: period_report(db, start, end))

# ---------- Dashboard ----------

@router.get("/api/dashboard")
def dashboard_api(db: Session = Depends(get_db), user: User = Depends(require_owner)):
    today = date.today()
    stats = cache.query_cache.get_or_load((cache.DASHBOARD, today), lambda: dashboard_stats(db, today).as_json())
    return ok({"stats": stats})

# ---------- Laporan ----------

@router.get("/api/laporan")
def laporan_api(start: Optional[str] = None, end: Optional[str] = None,
                db: Session = Depends(get_db), user: User = Depends(require_owner)):
    d_start, d_end = _range(start, end)
    return ok({"report": _cached_report(db, d_start, d_end).as_json()})


@router.get("/laporan", response_class=HTMLResponse)
def laporan_page(request: Request, start: Optional[str] = None, end: Optional[str] = None,
                 db: Session = Depends(get_db), user: User = Depends(require_owner)):
    d_start, d_end = _range(start, end)
    report = _cached_report(db, d_start, d_end)
    return templates.TemplateResponse(request, "laporan.html", ctx(request, user, {"report": report}))


def build_period_pdf(report: PeriodReport, booth_name: str) -> BytesIO:
    """Laporan laba rugi als A4-PDF (Ringkasan + Tabelle pro Hari)."""
    styles = getSampleStyleSheet()
    buf = BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4,
                            leftMargin=15*mm, rightMargin=15*mm,
                            topMargin=12*mm, bottomMargin=12*mm)
    story = []
    title = f"Laporan {booth_name} ({format_date(report.start)} s/d {format_date(report.end)})"
    story.append(Paragraph(title, styles["Title"]))
    story.append(Spacer(1, 6))

    t = report.totals
    head = [
        ["Pendapatan", format_rupiah(t.revenue)],
        ["HPP", format_rupiah(t.hpp)],
        ["Operasional", format_rupiah(t.opex)],
        ["Laba Bersih", format_rupiah(t.net_profit)],
        ["Margin", f"{t.margin:.2f}%"],
    ]
    t1 = Table(head, colWidths=[70*mm, 50*mm])
    t1.setStyle(TableStyle([("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                            ("BACKGROUND", (0, 3), (-1, 3), colors.whitesmoke),
                            ("ALIGN", (1, 0), (1, -1), "RIGHT")]))
    story.append(t1)
    story.append(Spacer(1, 8))

    rows = [["Tanggal", "Pendapatan", "HPP", "Operasional", "Laba"]]
    for d in report.daily:
        rows.append([format_date(d.day), format_rupiah(d.totals.revenue), format_rupiah(d.totals.hpp),
                     format_rupiah(d.totals.opex), format_rupiah(d.totals.net_profit)])
    t2 = Table(rows, colWidths=[30*mm, 38*mm, 38*mm, 38*mm, 36*mm], repeatRows=1)
    t2.setStyle(TableStyle([("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                            ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke),
                            ("ALIGN", (1, 1), (-1, -1), "RIGHT")]))
    story.append(t2)

    doc.build(story)
    buf.seek(0)
    return buf


@router.get("/laporan.pdf")
def laporan_pdf(start: Optional[str] = None, end: Optional[str] = None,
                db: Session = Depends(get_db), user: User = Depends(require_owner)):
    d_start, d_end = _range(start, end)
    buf = build_period_pdf(_cached_report(db, d_start, d_end), app_settings.BOOTH_NAME)
    filename = f"laporan_{d_start.isoformat()}_{d_end.isoformat()}.pdf"
    return Response(
        content=buf.getvalue(),
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )

# ---------- Closing Periode ----------

@router.get("/api/closing-periode")
def closing_list(db: Session = Depends(get_db), user: User = Depends(require_owner)):
    def _load():
        return [period_closing.closing_json(c) for c in period_closing.list_period_closings(db)]
    return ok({"closings": cache.query_cache.get_or_load((cache.PERIOD_CLOSINGS,), _load)})


@router.post("/api/closing-periode/preview")
async def closing_preview(request: Request, db: Session = Depends(get_db), user: User = Depends(require_owner)):
    payload = await read_json(request)
    start, end = parse_day(payload.get("start")), parse_day(payload.get("end"))
    report = period_report(db, start, end)
    percent = period_closing.share_percent_value(payload.get("karyawan_share_percent"))
    return ok({
        "start": start.isoformat(),
        "end": end.isoformat(),
        "totals": report.totals.as_json(),
        "has_overlap": period_closing.has_overlap(start, end, period_closing.list_period_closings(db)),
        "is_empty": report.totals.is_empty,
        "karyawan_share_amount": to_json_number(period_closing.karyawan_share_amount(report.totals.net_profit, percent)),
    })


@router.post("/api/closing-periode")
async def closing_create(request: Request, db: Session = Depends(get_db), user: User = Depends(require_owner)):
    payload = await read_json(request)
    closing = period_closing.lock_period(
        db,
        parse_day(payload.get("start")),
        parse_day(payload.get("end")),
        created_by=user.id,
        share_percent=payload.get("karyawan_share_percent"),
    )
    return ok({"closing": period_closing.closing_json(closing)}, status_code=201)
