"""Pytest configuration and shared fixtures."""

import os

# vor allen App-Imports: In-Memory-DB, keine Demo-Daten
os.environ["BOOTH_DATABASE_URL"] = "sqlite://"
os.environ["BOOTH_DEV_SEED"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from boothfinance.models.base import Base, build_engine, get_db
from boothfinance.models.entities import Item
from boothfinance.models.user import ROLE_KARYAWAN, ROLE_OWNER, User
from boothfinance.services.auth import hash_password
from boothfinance.services.cache import query_cache
import boothfinance.services.db_init  # noqa: F401  (registriert alle Modelle)

OWNER_PASSWORD = "owner-pass"
KARYAWAN_PASSWORD = "karyawan-pass"


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def clear_cache():
    query_cache.clear()
    yield
    query_cache.clear()


def _user(db, email, name, password, role):
    u = User(email=email, name=name, password_hash=hash_password(password, iterations=1000),
             role=role, is_active=True)
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def owner(db):
    return _user(db, "owner@test.local", "Owner", OWNER_PASSWORD, ROLE_OWNER)


@pytest.fixture
def karyawan(db):
    return _user(db, "karyawan@test.local", "Karyawan", KARYAWAN_PASSWORD, ROLE_KARYAWAN)


@pytest.fixture
def items(db):
    """Es Teh 5000/500, Kopi 12000/1000, Roti 15000/1500 (Preis/Fee)."""
    rows = [
        Item(name="Es Teh", price=5000, sales_fee=500, is_active=True),
        Item(name="Kopi", price=12000, sales_fee=1000, is_active=True),
        Item(name="Roti", price=15000, sales_fee=1500, is_active=True),
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def client(db):
    from main import app

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, email, password):
    r = client.post("/login", data={"email": email, "password": password}, follow_redirects=False)
    assert r.status_code == 303
    return r


@pytest.fixture
def owner_client(client, owner):
    login(client, owner.email, OWNER_PASSWORD)
    return client


@pytest.fixture
def karyawan_client(client, karyawan):
    login(client, karyawan.email, KARYAWAN_PASSWORD)
    return client


@pytest.fixture
def login_as(client, owner, karyawan):
    """Wechselt den eingeloggten Benutzer des Test-Clients."""
    passwords = {owner.email: OWNER_PASSWORD, karyawan.email: KARYAWAN_PASSWORD}

    def _login(user):
        client.post("/logout", follow_redirects=False)
        return login(client, user.email, passwords[user.email])
    return _login
