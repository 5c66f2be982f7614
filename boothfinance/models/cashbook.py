# boothfinance/models/cashbook.py
from __future__ import annotations
from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, Text, ForeignKey, Index, CheckConstraint
from boothfinance.models.base import Base, utcnow

TYPE_IN = "IN"
TYPE_OUT = "OUT"

CAT_PENJUALAN = "PENJUALAN"
CAT_BAHAN_DAGANGAN = "BAHAN_DAGANGAN"
CAT_OPEX = "OPEX"
CAT_MODAL_IN = "MODAL_IN"
CAT_MODAL_OUT = "MODAL_OUT"
CAT_WITHDRAW_PROFIT = "WITHDRAW_PROFIT"
CAT_PRIBADI_OWNER = "PRIBADI_OWNER"

# Kategorie bestimmt die Richtung
CATEGORY_TYPES = {
    CAT_PENJUALAN: TYPE_IN,
    CAT_BAHAN_DAGANGAN: TYPE_OUT,
    CAT_OPEX: TYPE_OUT,
    CAT_MODAL_IN: TYPE_IN,
    CAT_MODAL_OUT: TYPE_OUT,
    CAT_WITHDRAW_PROFIT: TYPE_OUT,
    CAT_PRIBADI_OWNER: TYPE_OUT,
}

CATEGORY_LABELS = {
    CAT_PENJUALAN: "Penjualan",
    CAT_BAHAN_DAGANGAN: "HPP",
    CAT_OPEX: "OPEX",
    CAT_MODAL_IN: "Modal Masuk",
    CAT_MODAL_OUT: "Modal Keluar",
    CAT_WITHDRAW_PROFIT: "Tarik Profit",
    CAT_PRIBADI_OWNER: "Pribadi",
}

# PENJUALAN entsteht nur beim Closing
MANUAL_CATEGORIES = tuple(c for c in CATEGORY_TYPES if c != CAT_PENJUALAN)


def type_for_category(category: str) -> str:
    return CATEGORY_TYPES[category]


class CashbookEntry(Base):
    __tablename__ = "cashbook"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_cashbook_amount_positive"),)

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False, index=True)
    type = Column(String(3), nullable=False)          # IN | OUT
    category = Column(String(30), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    session_id = Column(Integer, ForeignKey("booth_sessions.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

Index("ix_cashbook_date_type_category", CashbookEntry.date, CashbookEntry.type, CashbookEntry.category)
