from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from boothfinance.models.base import Base, engine, SessionLocal
# Alle Modelle registrieren (Side-Effect-Import)
import boothfinance.models.cashbook  # noqa: F401
import boothfinance.models.entities  # noqa: F401
import boothfinance.models.user  # noqa: F401
from boothfinance.models.entities import Item
from boothfinance.services.auth import seed_users_if_empty

logger = logging.getLogger("boothfinance.db")

DEMO_ITEMS = [
    ("Es Teh Manis", 5000, 500),
    ("Kopi Susu", 12000, 1000),
    ("Roti Bakar", 15000, 1500),
]


def seed_items_if_empty(db: Session) -> None:
    if db.query(Item).count() > 0:
        return
    for name, price, fee in DEMO_ITEMS:
        db.add(Item(name=name, price=price, sales_fee=fee, is_active=True))
    db.commit()


def init_db(dev_seed: bool = True, bind=None) -> None:
    """
    Initialisiert die DB-Struktur und legt (optional) Demo-User und -Items an.
    Wird beim App-Startup von main.py aufgerufen.
    """
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info("database ready at %s", bind.url)

    if dev_seed:
        with SessionLocal(bind=bind) as db:
            seed_users_if_empty(db)
            seed_items_if_empty(db)
