from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from boothfinance.http import ok
from boothfinance.models.base import get_db
from boothfinance.models.user import User
from boothfinance.services import cache, fees
from boothfinance.services.auth import require_owner

router = APIRouter(tags=["Fee"])


@router.get("/api/fee")
def fee_overview(db: Session = Depends(get_db), user: User = Depends(require_owner)):
    def _load():
        rows = fees.list_fee_sessions(db)
        pending, paid = fees.split_pending_paid(rows)
        return {
            "summary": fees.fee_summary(rows).as_json(),
            "pending": [fees.fee_session_json(s) for s in pending],
            "paid": [fees.fee_session_json(s) for s in paid],
        }
    return ok(cache.query_cache.get_or_load((cache.FEE_SESSIONS,), _load))


@router.post("/api/fee/{session_id}/bayar")
def fee_pay_single(session_id: int, db: Session = Depends(get_db), user: User = Depends(require_owner)):
    return ok({"paid": fees.mark_fee_paid(db, [session_id], paid_by=user.id)})


@router.post("/api/fee/bayar-semua")
def fee_pay_all(db: Session = Depends(get_db), user: User = Depends(require_owner)):
    return ok({"paid": fees.pay_all_pending(db, paid_by=user.id)})
