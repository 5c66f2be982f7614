"""Perioden-Aggregation fuer Dashboard, Laporan und Closing Periode."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from boothfinance.models.cashbook import (
    CAT_BAHAN_DAGANGAN, CAT_OPEX, CAT_PENJUALAN, TYPE_IN, TYPE_OUT,
)
from boothfinance.services import ledger, sessions
from boothfinance.services.errors import ValidationError
from boothfinance.services.money import ZERO, D, round2, to_json_number


@dataclass(frozen=True)
class PeriodTotals:
    revenue: Decimal = ZERO
    hpp: Decimal = ZERO
    opex: Decimal = ZERO

    @property
    def net_profit(self) -> Decimal:
        return round2(self.revenue - self.hpp - self.opex)

    @property
    def margin(self) -> float:
        """net_profit / revenue in Prozent; 0 ohne Umsatz."""
        if self.revenue <= 0:
            return 0.0
        return round(float(self.net_profit / self.revenue * 100), 2)

    @property
    def is_empty(self) -> bool:
        return self.revenue == 0 and self.hpp == 0 and self.opex == 0

    def as_json(self) -> dict:
        return {
            "revenue": to_json_number(self.revenue),
            "hpp": to_json_number(self.hpp),
            "opex": to_json_number(self.opex),
            "net_profit": to_json_number(self.net_profit),
            "margin": self.margin,
        }


@dataclass(frozen=True)
class DailyTotals:
    day: date
    totals: PeriodTotals

    def as_json(self) -> dict:
        out = {"date": self.day.isoformat()}
        out.update(self.totals.as_json())
        out["profit"] = out.pop("net_profit")
        del out["margin"]
        return out


@dataclass(frozen=True)
class PeriodReport:
    start: date
    end: date
    totals: PeriodTotals
    daily: List[DailyTotals] = field(default_factory=list)

    def as_json(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "totals": self.totals.as_json(),
            "daily": [d.as_json() for d in self.daily],
        }


def aggregate_entries(entries: Iterable) -> PeriodTotals:
    """
    Partitioniert Kassenbuch-Eintraege (type, category, amount):
    revenue = IN/PENJUALAN, hpp = OUT/BAHAN_DAGANGAN, opex = OUT/OPEX.
    Alles andere (Modal, Privat, ...) zaehlt nicht zum Ergebnis.
    """
    revenue = hpp = opex = ZERO
    for e in entries:
        if e.type == TYPE_IN and e.category == CAT_PENJUALAN:
            revenue += D(e.amount)
        elif e.type == TYPE_OUT and e.category == CAT_BAHAN_DAGANGAN:
            hpp += D(e.amount)
        elif e.type == TYPE_OUT and e.category == CAT_OPEX:
            opex += D(e.amount)
    return PeriodTotals(revenue=round2(revenue), hpp=round2(hpp), opex=round2(opex))


def iter_days(start: date, end: date) -> Iterable[date]:
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


def daily_breakdown(entries: Iterable, start: date, end: date) -> List[DailyTotals]:
    by_day = defaultdict(list)
    for e in entries:
        by_day[e.date].append(e)
    return [DailyTotals(day=d, totals=aggregate_entries(by_day.get(d, ()))) for d in iter_days(start, end)]


def period_report(db: Session, start: date, end: date) -> PeriodReport:
    if start > end:
        raise ValidationError("Tanggal mulai harus sebelum tanggal akhir")
    entries = ledger.query_ledger(db, start, end)
    return PeriodReport(start=start, end=end, totals=aggregate_entries(entries),
                        daily=daily_breakdown(entries, start, end))


@dataclass(frozen=True)
class DashboardStats:
    today: date
    today_state: str
    today_session_sales: Optional[Decimal]
    today_sales: Decimal
    month: PeriodTotals
    cash_balance: Decimal

    def as_json(self) -> dict:
        return {
            "today": self.today.isoformat(),
            "today_state": self.today_state,
            "today_session_sales": None if self.today_session_sales is None else to_json_number(self.today_session_sales),
            "today_sales": to_json_number(self.today_sales),
            "period_revenue": to_json_number(self.month.revenue),
            "period_hpp": to_json_number(self.month.hpp),
            "period_opex": to_json_number(self.month.opex),
            "net_profit": to_json_number(self.month.net_profit),
            "cash_balance": to_json_number(self.cash_balance),
        }


def dashboard_stats(db: Session, today: Optional[date] = None) -> DashboardStats:
    """Monat bis heute plus Tageswerte und Gesamtsaldo."""
    today = today or date.today()
    month_start = today.replace(day=1)
    entries = ledger.query_ledger(db, month_start, today)
    month = aggregate_entries(entries)
    today_totals = aggregate_entries(e for e in entries if e.date == today)
    s = sessions.get_session_for_date(db, today)
    return DashboardStats(
        today=today,
        today_state=s.status if s else sessions.STATE_NONE,
        today_session_sales=s.total_sales_input if s else None,
        today_sales=today_totals.revenue,
        month=month,
        cash_balance=ledger.cash_balance(db),
    )
