# boothfinance/models/user.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, UniqueConstraint

from boothfinance.models.base import Base, utcnow

# Rollen (Strings, konsistent mit main.py und require_role)
ROLE_OWNER = "owner"
ROLE_KARYAWAN = "karyawan"

VALID_ROLES = {ROLE_OWNER, ROLE_KARYAWAN}


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=ROLE_KARYAWAN)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def has_role(self, *roles: str) -> bool:
        return self.role in roles
