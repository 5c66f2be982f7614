from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from boothfinance.models.base import utcnow
from boothfinance.models.entities import SESSION_CLOSED, BoothSession
from boothfinance.services.cache import invalidate_for
from boothfinance.services.money import ZERO, D, round2, to_json_number
from boothfinance.services.tx import atomic

logger = logging.getLogger("boothfinance.fees")


def _fee_query(db: Session):
    return db.query(BoothSession).filter(BoothSession.status == SESSION_CLOSED, BoothSession.total_fee > 0)


def list_fee_sessions(db: Session) -> List[BoothSession]:
    """Geschlossene Sessions mit Fee > 0, neueste zuerst."""
    return _fee_query(db).order_by(BoothSession.date.desc()).all()


def split_pending_paid(sessions: Iterable[BoothSession]) -> Tuple[List[BoothSession], List[BoothSession]]:
    pending, paid = [], []
    for s in sessions:
        (paid if s.fee_paid else pending).append(s)
    return pending, paid


@dataclass(frozen=True)
class FeeSummary:
    pending_total: Decimal
    pending_count: int
    paid_total: Decimal
    paid_count: int

    def as_json(self) -> dict:
        return {
            "pending_total": to_json_number(self.pending_total),
            "pending_count": self.pending_count,
            "paid_total": to_json_number(self.paid_total),
            "paid_count": self.paid_count,
        }


def fee_summary(sessions: Iterable[BoothSession]) -> FeeSummary:
    pending, paid = split_pending_paid(sessions)
    return FeeSummary(
        pending_total=round2(sum((D(s.total_fee) for s in pending), start=ZERO)),
        pending_count=len(pending),
        paid_total=round2(sum((D(s.total_fee) for s in paid), start=ZERO)),
        paid_count=len(paid),
    )


def mark_fee_paid(db: Session, session_ids: Iterable[int], paid_by: Optional[int]) -> int:
    """
    Markiert die Fee der angegebenen Sessions als bezahlt, in einem Batch.
    Bereits bezahlte oder unbekannte IDs werden still uebergangen.
    Liefert die Anzahl tatsaechlich markierter Sessions.
    """
    ids = {int(i) for i in session_ids}
    if not ids:
        return 0
    now = utcnow()
    with atomic(db, "bayar fee"):
        targets = _fee_query(db).filter(BoothSession.id.in_(ids), BoothSession.fee_paid == False).all()  # noqa: E712
        for s in targets:
            s.fee_paid = True
            s.fee_paid_at = now
            s.fee_paid_by = paid_by
        paid_ids = sorted(s.id for s in targets)
    if paid_ids:
        invalidate_for("fee.pay")
    logger.info("fee paid sessions=%s by=%s", paid_ids, paid_by)
    return len(paid_ids)


def pay_all_pending(db: Session, paid_by: Optional[int]) -> int:
    pending, _ = split_pending_paid(list_fee_sessions(db))
    return mark_fee_paid(db, [s.id for s in pending], paid_by)


def fee_session_json(s: BoothSession) -> dict:
    return {
        "id": s.id,
        "date": s.date.isoformat(),
        "total_sales_input": to_json_number(s.total_sales_input or 0),
        "total_fee": to_json_number(s.total_fee),
        "fee_paid": bool(s.fee_paid),
        "fee_paid_at": s.fee_paid_at.isoformat() if s.fee_paid_at else None,
        "closed_by": s.closer.name if s.closer else None,
    }
