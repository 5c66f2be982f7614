"""Tests for the query cache and its invalidation table."""

from datetime import date

import pytest

from boothfinance.models.cashbook import CAT_OPEX
from boothfinance.services import cache, ledger
from boothfinance.services.cache import QueryCache, invalidate_for, query_cache
from boothfinance.services.errors import ValidationError


class TestQueryCache:
    def test_loader_runs_once(self):
        c = QueryCache()
        calls = []
        for _ in range(3):
            c.get_or_load(("items",), lambda: calls.append(1) or "x")
        assert calls == [1]

    def test_invalidate_by_query_name(self):
        c = QueryCache()
        c.get_or_load(("report", 1), lambda: 1)
        c.get_or_load(("report", 2), lambda: 2)
        c.get_or_load(("items",), lambda: 3)
        assert c.invalidate("report") == 2
        assert ("report", 1) not in c
        assert ("items",) in c

    def test_invalidate_during_load_skips_store(self):
        """Ein waehrend des Ladens invalidiertes Ergebnis wird nicht gecacht."""
        c = QueryCache()

        def stale_loader():
            c.invalidate("q")
            return "old"

        assert c.get_or_load(("q", 1), stale_loader) == "old"
        assert ("q", 1) not in c
        assert c.get_or_load(("q", 1), lambda: "new") == "new"
        assert ("q", 1) in c

    def test_invalidate_of_other_query_during_load_keeps_store(self):
        c = QueryCache()

        def loader():
            c.invalidate("items")
            return "v"

        c.get_or_load(("q",), loader)
        assert ("q",) in c

    def test_clear_during_load_skips_store(self):
        c = QueryCache()

        def loader():
            c.clear()
            return "old"

        c.get_or_load(("q",), loader)
        assert ("q",) not in c


class TestInvalidationTriggers:
    def test_every_mutation_names_known_queries(self):
        known = {cache.DASHBOARD, cache.BOOTH_SESSIONS, cache.CASHBOOK, cache.REPORT,
                 cache.PERIOD_CLOSINGS, cache.FEE_SESSIONS, cache.ITEMS}
        for names in cache.INVALIDATIONS.values():
            assert set(names) <= known

    def test_cashbook_record_drops_dashboard_keeps_closings(self):
        query_cache.get_or_load((cache.DASHBOARD, date(2024, 1, 1)), lambda: {})
        query_cache.get_or_load((cache.PERIOD_CLOSINGS,), lambda: [])
        invalidate_for("cashbook.record")
        assert (cache.DASHBOARD, date(2024, 1, 1)) not in query_cache
        assert (cache.PERIOD_CLOSINGS,) in query_cache

    def test_ledger_write_invalidates_report(self, db):
        key = (cache.REPORT, date(2024, 1, 1), date(2024, 1, 31))
        query_cache.get_or_load(key, lambda: "stale")
        ledger.append_entry(db, date(2024, 1, 5), CAT_OPEX, 1000)
        assert key not in query_cache

    def test_failed_write_keeps_cache(self, db):
        query_cache.get_or_load((cache.CASHBOOK, "recent"), lambda: [])
        with pytest.raises(ValidationError):
            ledger.append_entry(db, date(2024, 1, 5), CAT_OPEX, 0)
        assert (cache.CASHBOOK, "recent") in query_cache
