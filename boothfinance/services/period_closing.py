from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from boothfinance.config import settings as app_settings
from boothfinance.models.entities import PeriodClosing
from boothfinance.services.cache import invalidate_for
from boothfinance.services.errors import EmptyPeriodError, OverlapError, ValidationError
from boothfinance.services.money import ZERO, D, round2, to_json_number
from boothfinance.services.reports import PeriodTotals, period_report
from boothfinance.services.tx import atomic

logger = logging.getLogger("boothfinance.periods")


def ranges_overlap(start: date, end: date, other_start: date, other_end: date) -> bool:
    """Geschlossene Intervalle [start, end] schneiden sich."""
    return not (end < other_start or start > other_end)


def has_overlap(start: date, end: date, closings: Iterable[PeriodClosing]) -> bool:
    return any(ranges_overlap(start, end, c.start_date, c.end_date) for c in closings)


def list_period_closings(db: Session, limit: Optional[int] = None) -> List[PeriodClosing]:
    q = db.query(PeriodClosing).order_by(PeriodClosing.end_date.desc(), PeriodClosing.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()


def share_percent_value(value) -> Decimal:
    """Prozentsatz 0..100; None -> Default aus den Settings."""
    try:
        percent = D(app_settings.DEFAULT_KARYAWAN_SHARE_PERCENT if value is None else value)
    except InvalidOperation:
        raise ValidationError("Persentase bagi hasil tidak valid")
    if isinstance(value, bool) or not percent.is_finite():
        raise ValidationError("Persentase bagi hasil tidak valid")
    if percent < 0 or percent > 100:
        raise ValidationError("Persentase bagi hasil harus antara 0 dan 100")
    return percent


def karyawan_share_amount(net_profit: Decimal, percent) -> Decimal:
    # kein Anteil bei Verlust
    return round2(max(ZERO, D(net_profit)) * D(percent) / Decimal("100"))


def check_lockable(start: date, end: date, totals: PeriodTotals, closings: Iterable[PeriodClosing]) -> None:
    if start > end:
        raise ValidationError("Tanggal mulai harus sebelum tanggal akhir")
    if has_overlap(start, end, closings):
        raise OverlapError(start, end)
    if totals.is_empty:
        raise EmptyPeriodError(start, end)


def lock_period(
    db: Session,
    start: date,
    end: date,
    created_by: Optional[int],
    share_percent=None,
) -> PeriodClosing:
    """
    Friert die Periodenzahlen ein. Der Snapshot wird spaeter nie neu
    berechnet, auch wenn sich das Kassenbuch aendert.
    """
    percent = share_percent_value(share_percent)

    report = period_report(db, start, end)
    totals = report.totals
    check_lockable(start, end, totals, list_period_closings(db))

    closing = PeriodClosing(
        start_date=start,
        end_date=end,
        total_revenue=totals.revenue,
        total_hpp=totals.hpp,
        total_opex=totals.opex,
        net_profit=totals.net_profit,
        karyawan_share_percent=round2(percent),
        karyawan_share_amount=karyawan_share_amount(totals.net_profit, percent),
        created_by=created_by,
    )
    with atomic(db, "kunci periode"):
        db.add(closing)
    invalidate_for("period.lock")
    logger.info("period locked %s..%s revenue=%s net=%s by=%s", start, end, totals.revenue,
                totals.net_profit, created_by)
    return closing


def closing_json(c: PeriodClosing) -> dict:
    return {
        "id": c.id,
        "start_date": c.start_date.isoformat(),
        "end_date": c.end_date.isoformat(),
        "total_revenue": to_json_number(c.total_revenue),
        "total_hpp": to_json_number(c.total_hpp),
        "total_opex": to_json_number(c.total_opex),
        "net_profit": to_json_number(c.net_profit),
        "karyawan_share_percent": float(c.karyawan_share_percent or 0),
        "karyawan_share_amount": to_json_number(c.karyawan_share_amount or 0),
        "created_by": c.creator.name if c.creator else None,
        "created_at": c.created_at.isoformat() if c.created_at else None,
    }
