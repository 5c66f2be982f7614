"""Tests for employee sales-fee settlement."""

from datetime import date
from decimal import Decimal

import pytest

from boothfinance.services import fees, sessions


@pytest.fixture
def closed_sessions(db, owner, karyawan, items):
    """Zwei geschlossene Sessions mit Fee und eine ohne Fee."""
    teh, kopi, roti = items
    out = []
    for day, stocks, closes in [
        (date(2024, 1, 10), {teh.id: 10}, {teh.id: 4}),    # 6 x 500 = 3000
        (date(2024, 1, 11), {kopi.id: 5}, {kopi.id: 3}),   # 2 x 1000 = 2000
        (date(2024, 1, 12), {roti.id: 2}, {roti.id: 2}),   # nichts verkauft
    ]:
        s = sessions.open_session(db, stocks, opened_by=owner.id, day=day)
        out.append(sessions.close_session(db, s.id, total_sales=10000, qty_close=closes, closed_by=karyawan.id))
    return out


class TestFeeListing:
    def test_only_closed_sessions_with_fee(self, db, closed_sessions, owner, items):
        sessions.open_session(db, {items[0].id: 3}, opened_by=owner.id, day=date(2024, 1, 13))
        listed = fees.list_fee_sessions(db)
        assert [s.date for s in listed] == [date(2024, 1, 11), date(2024, 1, 10)]

    def test_summary_before_payment(self, db, closed_sessions):
        summary = fees.fee_summary(fees.list_fee_sessions(db))
        assert summary.pending_total == Decimal("5000")
        assert summary.pending_count == 2
        assert summary.paid_total == Decimal("0")


class TestMarkFeePaid:
    def test_pay_single(self, db, closed_sessions, owner):
        first = closed_sessions[0]
        assert fees.mark_fee_paid(db, [first.id], paid_by=owner.id) == 1
        db.expire_all()
        assert first.fee_paid is True
        assert first.fee_paid_at is not None
        assert first.fee_paid_by == owner.id

    def test_paying_twice_does_not_double_count(self, db, closed_sessions, owner):
        first = closed_sessions[0]
        fees.mark_fee_paid(db, [first.id], paid_by=owner.id)
        paid_at = first.fee_paid_at
        assert fees.mark_fee_paid(db, [first.id], paid_by=owner.id) == 0

        summary = fees.fee_summary(fees.list_fee_sessions(db))
        assert summary.paid_total == Decimal("3000")
        assert summary.paid_count == 1
        assert summary.pending_total == Decimal("2000")
        assert first.fee_paid_at == paid_at

    def test_unknown_and_fee_less_sessions_are_skipped(self, db, closed_sessions, owner):
        no_fee = closed_sessions[2]
        assert fees.mark_fee_paid(db, [no_fee.id, 4711], paid_by=owner.id) == 0
        db.expire_all()
        assert no_fee.fee_paid is False

    def test_open_session_is_not_payable(self, db, owner, items):
        s = sessions.open_session(db, {items[0].id: 3}, opened_by=owner.id, day=date(2024, 2, 1))
        assert fees.mark_fee_paid(db, [s.id], paid_by=owner.id) == 0

    def test_pay_all_pending(self, db, closed_sessions, owner):
        fees.mark_fee_paid(db, [closed_sessions[0].id], paid_by=owner.id)
        assert fees.pay_all_pending(db, paid_by=owner.id) == 1
        summary = fees.fee_summary(fees.list_fee_sessions(db))
        assert summary.pending_count == 0
        assert summary.paid_total == Decimal("5000")
        assert fees.pay_all_pending(db, paid_by=owner.id) == 0
