"""HTTP tests: role guards, JSON error mapping and the main flows."""


def _open(client, items, stocks=(10, 5, 0)):
    payload = {"stocks": {str(i.id): q for i, q in zip(items, stocks)}}
    return client.post("/api/booth/open", json=payload)


class TestAuth:
    def test_api_requires_login(self, client):
        assert client.get("/api/dashboard").status_code == 401

    def test_wrong_password(self, client, owner):
        r = client.post("/login", data={"email": owner.email, "password": "nope"}, follow_redirects=False)
        assert r.status_code == 401
        assert "Email atau password salah" in r.text

    def test_karyawan_cannot_open_booth(self, karyawan_client, items):
        assert _open(karyawan_client, items).status_code == 403

    def test_dashboard_redirects(self, client, login_as, owner, karyawan):
        assert client.get("/", follow_redirects=False).headers["location"] == "/login"
        login_as(karyawan)
        assert client.get("/", follow_redirects=False).headers["location"] == "/api/booth/today"
        login_as(owner)
        r = client.get("/")
        assert r.status_code == 200
        assert "Dashboard" in r.text

    def test_register_creates_karyawan(self, client):
        r = client.post("/register", data={"email": "Baru@Test.local", "password": "rahasia", "name": "Baru"},
                        follow_redirects=False)
        assert r.status_code == 303
        r = client.post("/login", data={"email": "baru@test.local", "password": "rahasia"}, follow_redirects=False)
        assert r.headers["location"] == "/api/booth/today"

    def test_register_short_password(self, client):
        r = client.post("/register", data={"email": "x@test.local", "password": "123", "name": "X"})
        assert r.status_code == 400


class TestBoothFlow:
    def test_open_estimate_close(self, client, login_as, owner, karyawan, items):
        teh, kopi, roti = items
        login_as(owner)
        r = _open(client, items)
        assert r.status_code == 201
        assert r.json()["session"]["status"] == "OPEN"

        dup = _open(client, items)
        assert dup.status_code == 409
        assert dup.json() == {"ok": False, "error": dup.json()["error"], "code": "DUPLICATE_SESSION"}

        login_as(karyawan)
        assert client.get("/api/booth/today").json()["state"] == "OPEN"

        est = client.post("/api/booth/estimate", json={"qty_close": {str(teh.id): 4}}).json()
        # 6 x 5000 + 5 x 12000
        assert est["estimated_revenue"] == 90000
        assert est["estimated_fee"] == 8000

        bad = client.post("/api/booth/close", json={"total_sales": 0})
        assert bad.status_code == 400
        assert bad.json()["code"] == "VALIDATION"

        too_many = client.post("/api/booth/close", json={"total_sales": 5000, "qty_close": {str(teh.id): 11}})
        assert too_many.status_code == 400

        r = client.post("/api/booth/close", json={"qty_close": {str(teh.id): 4}, "use_estimate": True})
        assert r.status_code == 200
        closed = r.json()["session"]
        assert closed["status"] == "CLOSED"
        assert closed["total_sales_input"] == 90000
        assert closed["total_fee"] == 8000

        again = client.post("/api/booth/close", json={"total_sales": 1000})
        assert again.status_code == 409
        assert again.json()["code"] == "SESSION_STATE"

        hist = client.get("/api/karyawan/riwayat").json()
        assert [s["status"] for s in hist["sessions"]] == ["CLOSED"]

    def test_close_without_session(self, karyawan_client):
        r = karyawan_client.post("/api/booth/close", json={"total_sales": 1000})
        assert r.status_code == 404
        assert r.json()["code"] == "SESSION_NOT_FOUND"

    def test_invalid_json_body(self, owner_client):
        r = owner_client.post("/api/booth/open", content=b"{not json", headers={"content-type": "application/json"})
        assert r.status_code == 400

    def test_history_reflects_new_session(self, owner_client, items):
        assert owner_client.get("/api/booth/history").json()["sessions"] == []
        _open(owner_client, items)
        hist = owner_client.get("/api/booth/history").json()
        assert hist["open_session"]["status"] == "OPEN"
        assert len(hist["sessions"]) == 1


class TestCashbookAndReports:
    def test_manual_entry_and_report(self, owner_client, items):
        _open(owner_client, items)
        owner_client.post("/api/booth/close", json={"total_sales": 100000})

        r = owner_client.post("/api/kas", json={"category": "bahan_dagangan", "amount": "Rp 40.000"})
        assert r.status_code == 201
        assert r.json()["entry"]["amount"] == 40000
        owner_client.post("/api/kas", json={"category": "OPEX", "amount": 10000})

        assert owner_client.post("/api/kas", json={"category": "PENJUALAN", "amount": 1}).status_code == 400

        kas = owner_client.get("/api/kas").json()
        assert len(kas["entries"]) == 3
        assert "PENJUALAN" not in [c["value"] for c in kas["categories"]]

        report = owner_client.get("/api/laporan").json()["report"]
        assert report["totals"] == {
            "revenue": 100000, "hpp": 40000, "opex": 10000, "net_profit": 50000, "margin": 50.0,
        }
        stats = owner_client.get("/api/dashboard").json()["stats"]
        assert stats["today_state"] == "CLOSED"
        assert stats["net_profit"] == 50000

    def test_report_pages(self, owner_client):
        assert owner_client.get("/laporan?start=2024-01-01&end=2024-01-31").status_code == 200
        pdf = owner_client.get("/laporan.pdf?start=2024-01-01&end=2024-01-07")
        assert pdf.status_code == 200
        assert pdf.headers["content-type"] == "application/pdf"
        assert pdf.content.startswith(b"%PDF")

    def test_bad_report_range(self, owner_client):
        r = owner_client.get("/api/laporan?start=2024-02-01&end=2024-01-01")
        assert r.status_code == 400


class TestPeriodClosingApi:
    def test_lock_flow(self, owner_client):
        empty = owner_client.post("/api/closing-periode", json={"start": "2020-01-01", "end": "2020-01-31"})
        assert empty.status_code == 400
        assert empty.json()["code"] == "EMPTY_PERIOD"

        owner_client.post("/api/kas", json={"category": "OPEX", "amount": 5000, "date": "2024-01-10"})
        body = {"start": "2024-01-01", "end": "2024-01-31", "karyawan_share_percent": 10}
        preview = owner_client.post("/api/closing-periode/preview", json=body).json()
        assert preview["has_overlap"] is False
        assert preview["totals"]["net_profit"] == -5000
        assert preview["karyawan_share_amount"] == 0

        r = owner_client.post("/api/closing-periode", json=body)
        assert r.status_code == 201
        assert r.json()["closing"]["net_profit"] == -5000

        overlap = owner_client.post("/api/closing-periode", json={"start": "2024-01-15", "end": "2024-02-05"})
        assert overlap.status_code == 409
        assert overlap.json()["code"] == "PERIOD_OVERLAP"

        assert len(owner_client.get("/api/closing-periode").json()["closings"]) == 1


class TestFeeApi:
    def test_pay_fee_once(self, owner_client, items):
        _open(owner_client, items)
        teh = items[0]
        sid = owner_client.post("/api/booth/close",
                                json={"total_sales": 50000, "qty_close": {str(teh.id): 5}}).json()["session"]["id"]

        overview = owner_client.get("/api/fee").json()
        assert overview["summary"]["pending_count"] == 1

        assert owner_client.post(f"/api/fee/{sid}/bayar").json()["paid"] == 1
        assert owner_client.post(f"/api/fee/{sid}/bayar").json()["paid"] == 0
        assert owner_client.post("/api/fee/bayar-semua").json()["paid"] == 0

        summary = owner_client.get("/api/fee").json()["summary"]
        assert summary["paid_count"] == 1
        assert summary["pending_count"] == 0


class TestItemsApi:
    def test_create_update_toggle(self, client, login_as, owner, karyawan):
        login_as(owner)
        r = client.post("/api/items", json={"name": "Kopi", "price": 12000, "sales_fee": 1000})
        assert r.status_code == 201
        item_id = r.json()["item"]["id"]

        r = client.post(f"/api/items/{item_id}", json={"name": "Kopi Susu", "price": 13000})
        assert r.json()["item"]["name"] == "Kopi Susu"
        client.post(f"/api/items/{item_id}/active", json={"is_active": False})

        login_as(karyawan)
        listing = client.get("/api/items").json()
        assert listing["active_count"] == 0
        assert listing["inactive_count"] == 1

        assert client.post("/api/items", json={"name": "X", "price": 1}).status_code == 403

    def test_unknown_item(self, owner_client):
        r = owner_client.post("/api/items/999", json={"name": "X", "price": 1})
        assert r.status_code == 404
        assert r.json()["code"] == "ITEM_NOT_FOUND"


class TestInputValidation:
    """Kaputte Eingaben ergeben 400 mit VALIDATION, nie 500."""

    def _post_raw(self, client, url, body: bytes):
        return client.post(url, content=body, headers={"content-type": "application/json"})

    def test_kas_nan_amount(self, owner_client):
        r = self._post_raw(owner_client, "/api/kas", b'{"category": "OPEX", "amount": NaN}')
        assert r.status_code == 400
        assert r.json()["code"] == "VALIDATION"
        assert owner_client.get("/api/kas").json()["entries"] == []

    def test_kas_category_not_text(self, owner_client):
        r = owner_client.post("/api/kas", json={"category": 7, "amount": 1000})
        assert r.status_code == 400

    def test_preview_nan_share_percent(self, owner_client):
        owner_client.post("/api/kas", json={"category": "OPEX", "amount": 5000, "date": "2024-01-10"})
        body = {"start": "2024-01-01", "end": "2024-01-31", "karyawan_share_percent": "NaN"}
        r = owner_client.post("/api/closing-periode/preview", json=body)
        assert r.status_code == 400
        assert r.json()["code"] == "VALIDATION"

    def test_closing_date_not_text(self, owner_client):
        r = owner_client.post("/api/closing-periode", json={"start": 20240101, "end": "2024-01-31"})
        assert r.status_code == 400
        assert r.json()["code"] == "VALIDATION"

    def test_close_with_qty_close_list(self, owner_client, items):
        _open(owner_client, items)
        r = owner_client.post("/api/booth/close", json={"total_sales": 1000, "qty_close": [1, 2]})
        assert r.status_code == 400
        assert owner_client.get("/api/booth/today").json()["state"] == "OPEN"

    def test_close_with_nan_total(self, owner_client, items):
        _open(owner_client, items)
        r = self._post_raw(owner_client, "/api/booth/close", b'{"total_sales": NaN}')
        assert r.status_code == 400
        assert owner_client.get("/api/booth/today").json()["state"] == "OPEN"

    def test_estimate_rejects_bad_qty_close(self, owner_client, items):
        _open(owner_client, items)
        assert owner_client.post("/api/booth/estimate", json={"qty_close": [1, 2]}).status_code == 400
        r = owner_client.post("/api/booth/estimate", json={"qty_close": {str(items[0].id): 2.9}})
        assert r.status_code == 400

    def test_fractional_session_id(self, owner_client):
        assert owner_client.post("/api/booth/estimate", json={"session_id": 1.5}).status_code == 400
