from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from boothfinance.services.errors import BackendError, BoothError

logger = logging.getLogger("boothfinance.db")


@contextmanager
def atomic(db: Session, action: str) -> Iterator[Session]:
    """
    Alle Schreibschritte eines Vorgangs in einer Transaktion.
    Fehler -> Rollback; DB-Fehler werden zu BackendError.
    """
    try:
        yield db
        db.commit()
    except BoothError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("%s failed: %s", action, exc)
        raise BackendError(f"Gagal menyimpan: {action}", detail=str(exc)) from exc
