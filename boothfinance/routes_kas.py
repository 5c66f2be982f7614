from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from boothfinance.http import ok, parse_day, read_json
from boothfinance.models.base import get_db
from boothfinance.models.cashbook import CATEGORY_LABELS, CATEGORY_TYPES, MANUAL_CATEGORIES
from boothfinance.models.user import User
from boothfinance.services import cache, catalog, ledger
from boothfinance.services.auth import require_owner, require_staff
from boothfinance.services.errors import ValidationError
from boothfinance.services.money import parse_rupiah_input

router = APIRouter(tags=["Kas"])

# ---------- Kassenbuch ----------

@router.get("/api/kas")
def kas_list(db: Session = Depends(get_db), user: User = Depends(require_owner)):
    def _load():
        return {
            "entries": [ledger.entry_json(e) for e in ledger.recent_entries(db)],
            "categories": [
                {"value": c, "label": CATEGORY_LABELS[c], "type": CATEGORY_TYPES[c]} for c in MANUAL_CATEGORIES
            ],
        }
    return ok(cache.query_cache.get_or_load((cache.CASHBOOK, "recent"), _load))


@router.post("/api/kas")
async def kas_input(request: Request, db: Session = Depends(get_db), user: User = Depends(require_owner)):
    payload = await read_json(request)
    amount = payload.get("amount")
    if isinstance(amount, str):
        amount = parse_rupiah_input(amount)
    category = payload.get("category")
    if not isinstance(category, str):
        raise ValidationError("Kategori wajib diisi")
    entry = ledger.record_manual_entry(
        db,
        category=category.strip().upper(),
        amount=amount,
        description=payload.get("description"),
        user_id=user.id,
        day=parse_day(payload.get("date"), default=date.today()),
    )
    return ok({"entry": ledger.entry_json(entry)}, status_code=201)

# ---------- Item-Katalog ----------

@router.get("/api/items")
def items_list(active_only: bool = False, db: Session = Depends(get_db), user: User = Depends(require_staff)):
    def _load():
        items = [catalog.item_json(i) for i in catalog.list_items(db, active_only=active_only)]
        active = sum(1 for i in items if i["is_active"])
        return {"items": items, "active_count": active, "inactive_count": len(items) - active}
    return ok(cache.query_cache.get_or_load((cache.ITEMS, active_only), _load))


@router.post("/api/items")
async def items_create(request: Request, db: Session = Depends(get_db), user: User = Depends(require_owner)):
    p = await read_json(request)
    item = catalog.create_item(db, p.get("name"), p.get("price", 0), p.get("sales_fee", 0))
    return ok({"item": catalog.item_json(item)}, status_code=201)


@router.post("/api/items/{item_id}")
async def items_update(item_id: int, request: Request, db: Session = Depends(get_db),
                       user: User = Depends(require_owner)):
    p = await read_json(request)
    item = catalog.upsert_item(db, p.get("name"), p.get("price", 0), p.get("sales_fee", 0), item_id=item_id)
    return ok({"item": catalog.item_json(item)})


@router.post("/api/items/{item_id}/active")
async def items_toggle(item_id: int, request: Request, db: Session = Depends(get_db),
                       user: User = Depends(require_owner)):
    p = await read_json(request)
    item = catalog.set_item_active(db, item_id, bool(p.get("is_active")))
    return ok({"item": catalog.item_json(item)})
