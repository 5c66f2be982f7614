# boothfinance/models/base.py
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from boothfinance.config import settings as app_settings

Base = declarative_base()


def utcnow() -> datetime:
    # naive UTC, wie SQLite DateTime-Spalten zurueckgibt
    return datetime.now(timezone.utc).replace(tzinfo=None)


def build_engine(url: str):
    # In-Memory: eine geteilte Verbindung, sonst sieht jede Connection eine leere DB
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )

    # SQLite: Pfad absolut machen und Ordner sicherstellen
    if url.startswith("sqlite:///"):
        rel = url[len("sqlite:///"):]  # z. B. ./db/booth.db
        db_file = Path(rel)
        if not db_file.is_absolute():
            db_file = Path.cwd() / db_file
        db_file.parent.mkdir(parents=True, exist_ok=True)
        abs_url = f"sqlite:///{db_file.as_posix()}"
        return create_engine(
            abs_url,
            connect_args={"check_same_thread": False},  # nur für SQLite
            future=True,
            pool_pre_ping=True,
        )

    # Andere DBs (Postgres/MySQL)
    return create_engine(url, future=True, pool_pre_ping=True)


engine = build_engine(app_settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db() -> Iterator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
