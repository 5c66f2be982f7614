from __future__ import annotations

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Date, Numeric, Boolean, ForeignKey, CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow

SESSION_OPEN = "OPEN"
SESSION_CLOSED = "CLOSED"

# ---------- Katalog ----------

class Item(Base):
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_items_price"),
        CheckConstraint("sales_fee >= 0", name="ck_items_sales_fee"),
    )
    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    price = Column(Numeric(14, 2), nullable=False, default=0)
    sales_fee = Column(Numeric(14, 2), nullable=False, default=0)  # Fee pro verkauftem Stück
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)

# ---------- Booth-Sessions ----------

class BoothSession(Base):
    __tablename__ = "booth_sessions"
    __table_args__ = (UniqueConstraint("date", name="uq_booth_sessions_date"),)

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    status = Column(String(10), nullable=False, default=SESSION_OPEN)  # OPEN|CLOSED
    opened_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    closed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    total_sales_input = Column(Numeric(14, 2))   # erst beim Closing gesetzt
    total_fee = Column(Numeric(14, 2), nullable=False, default=0)
    fee_paid = Column(Boolean, nullable=False, default=False)
    fee_paid_at = Column(DateTime)
    fee_paid_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    notes = Column(Text)
    created_at = Column(DateTime, default=utcnow)
    closed_at = Column(DateTime)

    items = relationship("BoothSessionItem", back_populates="session", cascade="all, delete-orphan",
                         order_by="BoothSessionItem.id")
    opener = relationship("User", foreign_keys=[opened_by])
    closer = relationship("User", foreign_keys=[closed_by])


class BoothSessionItem(Base):
    __tablename__ = "booth_session_items"
    __table_args__ = (
        UniqueConstraint("session_id", "item_id", name="uq_session_item"),
        CheckConstraint("qty_open >= 0", name="ck_session_items_qty_open"),
    )
    id = Column(Integer, primary_key=True)
    session_id = Column(Integer, ForeignKey("booth_sessions.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    qty_open = Column(Integer, nullable=False)
    qty_close = Column(Integer)  # NULL solange OPEN

    session = relationship("BoothSession", back_populates="items")
    item = relationship("Item")

# ---------- Periodenabschluss ----------

class PeriodClosing(Base):
    __tablename__ = "period_closings"
    id = Column(Integer, primary_key=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_revenue = Column(Numeric(14, 2), nullable=False)
    total_hpp = Column(Numeric(14, 2), nullable=False)
    total_opex = Column(Numeric(14, 2), nullable=False)
    net_profit = Column(Numeric(14, 2), nullable=False)
    karyawan_share_percent = Column(Numeric(5, 2), nullable=False, default=0)
    karyawan_share_amount = Column(Numeric(14, 2), nullable=False, default=0)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, nullable=False, default=utcnow)

    creator = relationship("User", foreign_keys=[created_by])
