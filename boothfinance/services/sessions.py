"""
Booth-Session Lebenszyklus: NONE -> OPEN -> CLOSED.

Open legt Session + Stock-Zeilen an, Close setzt Status, Restbestand,
Fee und bucht den Umsatz (PENJUALAN) ins Kassenbuch. Beides laeuft in
einer Transaktion.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boothfinance.models.base import utcnow
from boothfinance.models.cashbook import CAT_PENJUALAN, CashbookEntry, type_for_category
from boothfinance.models.entities import (
    SESSION_CLOSED, SESSION_OPEN, BoothSession, BoothSessionItem, Item,
)
from boothfinance.services.cache import invalidate_for
from boothfinance.services.errors import (
    DuplicateSessionError, SessionNotFoundError, SessionStateError, ValidationError,
)
from boothfinance.services.money import ZERO, D, format_date, parse_amount, round2, to_json_number
from boothfinance.services.tx import atomic

logger = logging.getLogger("boothfinance.sessions")

STATE_NONE = "NONE"

StockInput = Union[Mapping[int, int], Iterable[Tuple[int, int]]]


def _strict_int(value, message: str) -> int:
    # ganze Zahlen oder Ziffern-Strings (JSON-Keys); kein bool, keine Nachkommastellen
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ValidationError(message)
    raise ValidationError(message)


def _pairs(stocks: StockInput) -> List[Tuple[int, int]]:
    if isinstance(stocks, Mapping):
        raw = stocks.items()
    elif isinstance(stocks, (list, tuple)):
        raw = stocks
    else:
        raise ValidationError("Format stok tidak valid")
    out = []
    for pair in raw:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ValidationError("Format stok tidak valid")
        item_id, qty = pair
        out.append((_strict_int(item_id, "Item tidak valid"), _strict_int(qty, "Jumlah stok tidak valid")))
    return out

# ---------- Lesen ----------

def get_session_for_date(db: Session, day: Optional[date] = None) -> Optional[BoothSession]:
    day = day or date.today()
    return db.query(BoothSession).filter(BoothSession.date == day).first()


def get_session(db: Session, session_id: int) -> BoothSession:
    s = db.get(BoothSession, session_id)
    if s is None:
        raise SessionNotFoundError(session_id)
    return s


def session_state(db: Session, day: Optional[date] = None) -> str:
    s = get_session_for_date(db, day)
    return s.status if s else STATE_NONE


def list_sessions(db: Session) -> List[BoothSession]:
    return db.query(BoothSession).order_by(BoothSession.date.desc()).all()


def list_closed_sessions_since(db: Session, since: date) -> List[BoothSession]:
    return (
        db.query(BoothSession)
        .filter(BoothSession.status == SESSION_CLOSED, BoothSession.date >= since)
        .order_by(BoothSession.date.desc())
        .all()
    )

# ---------- Open ----------

def open_session(db: Session, stocks: StockInput, opened_by: Optional[int], day: Optional[date] = None) -> BoothSession:
    """
    Oeffnet die Booth fuer `day` (Default heute) mit Anfangsbestand pro Item.
    Eine Zeile pro uebergebenem Item; mindestens ein Item mit qty_open > 0.
    """
    day = day or date.today()
    pairs = _pairs(stocks)
    if not pairs:
        raise ValidationError("Mohon isi minimal 1 item")
    if any(qty < 0 for _, qty in pairs):
        raise ValidationError("Stok awal tidak boleh negatif")
    if not any(qty > 0 for _, qty in pairs):
        raise ValidationError("Mohon isi minimal 1 item")
    ids = [iid for iid, _ in pairs]
    if len(set(ids)) != len(ids):
        raise ValidationError("Item tidak boleh ganda")

    items = {i.id: i for i in db.query(Item).filter(Item.id.in_(ids)).all()}
    for iid in ids:
        if iid not in items or not items[iid].is_active:
            raise ValidationError(f"Item {iid} tidak tersedia")

    if get_session_for_date(db, day) is not None:
        raise DuplicateSessionError(day)

    with atomic(db, "buka booth"):
        session = BoothSession(date=day, status=SESSION_OPEN, opened_by=opened_by,
                               total_fee=ZERO, fee_paid=False)
        db.add(session)
        try:
            db.flush()
        except IntegrityError:
            # paralleler Opener war schneller (Unique auf date)
            raise DuplicateSessionError(day)
        for iid, qty in pairs:
            db.add(BoothSessionItem(session_id=session.id, item_id=iid, qty_open=qty))

    invalidate_for("session.open")
    logger.info("booth opened date=%s session=%s items=%d by=%s", day, session.id, len(pairs), opened_by)
    return session

# ---------- Closing ----------

def sold_qty(line: BoothSessionItem, qty_close: Optional[Mapping[int, int]] = None) -> int:
    if qty_close is None:
        close = line.qty_close or 0
    else:
        close = qty_close.get(line.item_id, 0)
    return max(0, line.qty_open - close)


def estimate_revenue(session: BoothSession, qty_close: Optional[Mapping[int, int]] = None) -> Decimal:
    """Schaetzung: Summe verkaufte Stueck x Preis. Nur Vorschlag fuer total_sales_input."""
    total = sum((D(sold_qty(l, qty_close)) * D(l.item.price) for l in session.items), start=ZERO)
    return round2(total)


def compute_session_fee(session: BoothSession, qty_close: Optional[Mapping[int, int]] = None) -> Decimal:
    total = sum((D(sold_qty(l, qty_close)) * D(l.item.sales_fee) for l in session.items), start=ZERO)
    return round2(total)


def clean_qty_close(session: BoothSession, qty_close: Optional[Mapping]) -> Dict[int, int]:
    """Restbestand pro Item pruefen (0..qty_open); fehlende Items -> 0."""
    if qty_close is None:
        qty_close = {}
    if not isinstance(qty_close, Mapping):
        raise ValidationError("Format stok sisa tidak valid")
    by_item = {l.item_id: l for l in session.items}
    out: Dict[int, int] = {}
    for raw_id, raw_qty in qty_close.items():
        iid = _strict_int(raw_id, "Item tidak valid")
        qty = _strict_int(raw_qty, "Stok sisa tidak valid")
        line = by_item.get(iid)
        if line is None:
            raise ValidationError(f"Item {iid} tidak ada di sesi ini")
        if qty < 0 or qty > line.qty_open:
            raise ValidationError(f"Stok sisa {line.item.name} harus antara 0 dan {line.qty_open}")
        out[iid] = qty
    for iid in by_item:
        out.setdefault(iid, 0)
    return out


def close_session(
    db: Session,
    session_id: int,
    total_sales=None,
    qty_close: Optional[Mapping] = None,
    closed_by: Optional[int] = None,
    notes: Optional[str] = None,
    use_estimate: bool = False,
) -> BoothSession:
    """
    Closing: Status CLOSED, total_sales_input, Restbestand, total_fee und
    eine PENJUALAN-Buchung. Alles oder nichts.
    """
    session = get_session(db, session_id)
    if session.status != SESSION_OPEN:
        raise SessionStateError("Closing sudah dilakukan")

    closes = clean_qty_close(session, qty_close)
    amount = estimate_revenue(session, closes) if use_estimate else parse_amount(total_sales, "Total penjualan")
    if amount <= 0:
        raise ValidationError("Total penjualan harus lebih dari 0")
    fee = compute_session_fee(session, closes)
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("Catatan tidak valid")
    notes = (notes or "").strip() or None

    with atomic(db, "closing booth"):
        session.status = SESSION_CLOSED
        session.total_sales_input = amount
        session.closed_by = closed_by
        session.closed_at = utcnow()
        session.notes = notes
        session.total_fee = fee
        session.fee_paid = False
        for line in session.items:
            line.qty_close = closes[line.item_id]
        db.add(CashbookEntry(
            date=session.date,
            type=type_for_category(CAT_PENJUALAN),
            category=CAT_PENJUALAN,
            amount=amount,
            description=f"Penjualan {format_date(session.date)}",
            user_id=closed_by,
            session_id=session.id,
        ))

    invalidate_for("session.close")
    logger.info("booth closed session=%s sales=%s fee=%s by=%s", session.id, amount, fee, closed_by)
    return session

# ---------- Ausgabe ----------

def session_lines(session: BoothSession, qty_close: Optional[Mapping[int, int]] = None) -> List[dict]:
    rows = []
    for l in session.items:
        sold = sold_qty(l, qty_close)
        rows.append({
            "id": l.id,
            "item_id": l.item_id,
            "name": l.item.name,
            "price": to_json_number(l.item.price),
            "qty_open": l.qty_open,
            "qty_close": l.qty_close,
            "sold": sold,
            "revenue": to_json_number(D(sold) * D(l.item.price)),
        })
    return rows


def session_json(session: BoothSession, with_items: bool = False) -> dict:
    out = {
        "id": session.id,
        "date": session.date.isoformat(),
        "status": session.status,
        "opened_by": session.opener.name if session.opener else None,
        "closed_by": session.closer.name if session.closer else None,
        "total_sales_input": None if session.total_sales_input is None else to_json_number(session.total_sales_input),
        "total_fee": to_json_number(session.total_fee or 0),
        "fee_paid": bool(session.fee_paid),
        "fee_paid_at": session.fee_paid_at.isoformat() if session.fee_paid_at else None,
        "notes": session.notes,
    }
    if with_items:
        out["items"] = session_lines(session)
        if session.status == SESSION_OPEN:
            out["estimated_revenue"] = to_json_number(estimate_revenue(session, {}))
    return out
