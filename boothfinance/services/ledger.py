from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from boothfinance.config import settings as app_settings
from boothfinance.models.cashbook import (
    CATEGORY_LABELS, CATEGORY_TYPES, MANUAL_CATEGORIES, TYPE_IN, TYPE_OUT, CashbookEntry, type_for_category,
)
from boothfinance.services.cache import invalidate_for
from boothfinance.services.errors import ValidationError
from boothfinance.services.money import ZERO, D, parse_amount, round2, to_json_number
from boothfinance.services.tx import atomic

logger = logging.getLogger("boothfinance.ledger")


def _clean_text(value) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValidationError("Keterangan tidak valid")
    return (value or "").strip() or None


def append_entry(
    db: Session,
    day: date,
    category: str,
    amount,
    description: Optional[str] = None,
    user_id: Optional[int] = None,
    session_id: Optional[int] = None,
) -> CashbookEntry:
    """Bucht einen Eintrag; Typ (IN/OUT) folgt aus der Kategorie."""
    if category not in CATEGORY_TYPES:
        raise ValidationError(f"Kategori tidak dikenal: {category}")
    amount = parse_amount(amount)
    if amount <= 0:
        raise ValidationError("Nominal harus lebih dari 0")

    entry = CashbookEntry(
        date=day,
        type=type_for_category(category),
        category=category,
        amount=amount,
        description=_clean_text(description),
        user_id=user_id,
        session_id=session_id,
    )
    with atomic(db, "simpan transaksi"):
        db.add(entry)
    invalidate_for("cashbook.record")
    logger.info("cashbook %s %s %s date=%s by=%s", entry.type, category, amount, day, user_id)
    return entry


def record_manual_entry(db: Session, category: str, amount, description: Optional[str] = None,
                        user_id: Optional[int] = None, day: Optional[date] = None) -> CashbookEntry:
    # PENJUALAN kommt nur aus dem Closing
    if category not in MANUAL_CATEGORIES:
        raise ValidationError("Kategori ini tidak bisa diinput manual")
    return append_entry(db, day or date.today(), category, amount, description, user_id)


def query_ledger(db: Session, start: date, end: date) -> List[CashbookEntry]:
    """Alle Eintraege mit start <= date <= end."""
    return (
        db.query(CashbookEntry)
        .filter(CashbookEntry.date >= start, CashbookEntry.date <= end)
        .order_by(CashbookEntry.date.asc(), CashbookEntry.id.asc())
        .all()
    )


def recent_entries(db: Session, limit: Optional[int] = None) -> List[CashbookEntry]:
    return (
        db.query(CashbookEntry)
        .order_by(CashbookEntry.date.desc(), CashbookEntry.created_at.desc(), CashbookEntry.id.desc())
        .limit(limit or app_settings.RECENT_CASHBOOK_LIMIT)
        .all()
    )


def cash_balance(db: Session) -> Decimal:
    """Saldo ueber alles: Summe IN - Summe OUT."""
    rows = db.query(CashbookEntry.type, func.sum(CashbookEntry.amount)).group_by(CashbookEntry.type).all()
    sums = {t: D(s or 0) for t, s in rows}
    return round2(sums.get(TYPE_IN, ZERO) - sums.get(TYPE_OUT, ZERO))


def entry_json(e: CashbookEntry) -> dict:
    return {
        "id": e.id,
        "date": e.date.isoformat(),
        "type": e.type,
        "category": e.category,
        "label": CATEGORY_LABELS.get(e.category, e.category),
        "amount": to_json_number(e.amount),
        "description": e.description,
        "session_id": e.session_id,
    }
