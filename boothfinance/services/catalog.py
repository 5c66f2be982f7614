from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from boothfinance.models.entities import Item
from boothfinance.services.cache import invalidate_for
from boothfinance.services.errors import ItemNotFoundError, ValidationError
from boothfinance.services.money import parse_amount, to_json_number
from boothfinance.services.tx import atomic

logger = logging.getLogger("boothfinance.catalog")


def list_items(db: Session, active_only: bool = False) -> List[Item]:
    q = db.query(Item)
    if active_only:
        q = q.filter(Item.is_active == True)  # noqa: E712
    return q.order_by(Item.name.asc()).all()


def _clean(name: str, price, sales_fee):
    if name is not None and not isinstance(name, str):
        raise ValidationError("Nama item tidak valid")
    name = (name or "").strip()
    if not name:
        raise ValidationError("Nama item tidak boleh kosong")
    price, sales_fee = parse_amount(price, "Harga"), parse_amount(sales_fee, "Fee")
    if price < 0 or sales_fee < 0:
        raise ValidationError("Harga dan fee tidak boleh negatif")
    return name, price, sales_fee


def upsert_item(db: Session, name: str, price=0, sales_fee=0, item_id: Optional[int] = None) -> Item:
    """Neues Item anlegen (item_id=None) oder bestehendes aktualisieren."""
    name, price, sales_fee = _clean(name, price, sales_fee)
    with atomic(db, "simpan item"):
        if item_id is None:
            item = Item(name=name, price=price, sales_fee=sales_fee, is_active=True)
            db.add(item)
        else:
            item = db.get(Item, item_id)
            if item is None:
                raise ItemNotFoundError(item_id)
            item.name, item.price, item.sales_fee = name, price, sales_fee
    invalidate_for("item.change")
    logger.info("item saved id=%s name=%r price=%s fee=%s", item.id, name, price, sales_fee)
    return item


def create_item(db: Session, name: str, price=0, sales_fee=0) -> Item:
    return upsert_item(db, name, price, sales_fee)


def set_item_active(db: Session, item_id: int, active: bool) -> Item:
    # Items werden nie geloescht, nur deaktiviert
    with atomic(db, "ubah status item"):
        item = db.get(Item, item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        item.is_active = bool(active)
    invalidate_for("item.change")
    return item


def item_json(item: Item) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "price": to_json_number(item.price),
        "sales_fee": to_json_number(item.sales_fee),
        "is_active": bool(item.is_active),
    }
