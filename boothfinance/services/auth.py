import base64
import hmac
import os
from hashlib import pbkdf2_hmac
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boothfinance.models.base import get_db
from boothfinance.models.user import (
    User,
    ROLE_KARYAWAN,
    ROLE_OWNER,
    VALID_ROLES,
)
from boothfinance.services.errors import ValidationError
from boothfinance.services.tx import atomic

# Session Keys
SESSION_USER_ID = "user_id"
SESSION_ROLE = "role"

MIN_PASSWORD_LEN = 6

# ---------- Passwort-Hashing (PBKDF2) ----------
def _b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def _unb64(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"))

def hash_password(plain: str, *, iterations: int = 310_000, salt: bytes | None = None) -> str:
    salt = salt or os.urandom(16)
    dk = pbkdf2_hmac("sha256", plain.encode("utf-8"), salt, iterations)
    return f"pbkdf2${iterations}${_b64(salt)}${_b64(dk)}"

def verify_password(plain: str, stored: str) -> bool:
    try:
        scheme, s_iter, s_salt, s_hash = stored.split("$", 3)
        iterations = int(s_iter)
        salt = _unb64(s_salt)
        expected = _unb64(s_hash)
    except ValueError:
        # kaputter Hash-String (auch binascii.Error ist ein ValueError)
        return False
    if scheme != "pbkdf2":
        return False
    test = pbkdf2_hmac("sha256", plain.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(test, expected)

# ---------- Auth-Helpers ----------
def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == email.strip().lower(), User.is_active == True).first()  # noqa: E712
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user

def _email_taken(db: Session, email: str) -> bool:
    return db.query(User).filter(User.email == email).first() is not None

def register_user(db: Session, email: str, password: str, name: str, role: str = ROLE_KARYAWAN) -> User:
    email = (email or "").strip().lower()
    name = (name or "").strip()
    if not email or not name:
        raise ValidationError("Nama dan email wajib diisi")
    if len(password or "") < MIN_PASSWORD_LEN:
        raise ValidationError(f"Password minimal {MIN_PASSWORD_LEN} karakter")
    if role not in VALID_ROLES:
        raise ValidationError("Role tidak valid")
    if _email_taken(db, email):
        raise ValidationError("Email sudah terdaftar")
    user = User(email=email, name=name, password_hash=hash_password(password), role=role, is_active=True)
    with atomic(db, "registrasi"):
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            # gleichzeitige Registrierung (Unique auf email)
            raise ValidationError("Email sudah terdaftar")
    return user

def login_user(request: Request, user: User) -> None:
    request.session[SESSION_USER_ID] = user.id
    request.session[SESSION_ROLE] = user.role

def logout_user(request: Request) -> None:
    request.session.pop(SESSION_USER_ID, None)
    request.session.pop(SESSION_ROLE, None)

def get_current_user(request: Request, db: Session) -> Optional[User]:
    uid = request.session.get(SESSION_USER_ID)
    if not uid:
        return None
    return db.query(User).filter(User.id == uid, User.is_active == True).first()  # noqa: E712

def require_role(*roles: str):
    """FastAPI-Dependency: eingeloggter User mit einer der Rollen."""
    def _dep(request: Request, db: Session = Depends(get_db)) -> User:
        user = get_current_user(request, db)
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Silakan login")
        if roles and not user.has_role(*roles):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Akses ditolak")
        return user
    return _dep

require_owner = require_role(ROLE_OWNER)
require_staff = require_role(ROLE_OWNER, ROLE_KARYAWAN)

# ---------- Seeds ----------
def seed_users_if_empty(db: Session) -> None:
    """Legt Demo-Benutzer an, falls Tabelle leer ist."""
    if db.query(User).count() > 0:
        return
    seeds = [
        ("owner@example.com", "Owner Demo", "owner1234", ROLE_OWNER),
        ("karyawan@example.com", "Karyawan Demo", "karyawan1234", ROLE_KARYAWAN),
    ]
    for email, name, pw, role in seeds:
        db.add(User(email=email, name=name, password_hash=hash_password(pw), role=role, is_active=True))
    db.commit()
