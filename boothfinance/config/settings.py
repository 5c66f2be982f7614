# boothfinance/config/settings.py
import os

APP_NAME: str = "Booth Finance"
BOOTH_NAME: str = os.environ.get("BOOTH_NAME", "Booth")
SECRET_KEY: str = os.environ.get("BOOTH_SECRET_KEY", "change-this-in-production-please-32bytes")

# DB-URL (sqlite Datei liegt unter ./db/)
DATABASE_URL: str = os.environ.get("BOOTH_DATABASE_URL", "sqlite:///./db/booth.db")

LOG_LEVEL: str = os.environ.get("BOOTH_LOG_LEVEL", "INFO")

# Demo-User und -Items beim Start anlegen (leere DB)
DEV_SEED: bool = os.environ.get("BOOTH_DEV_SEED", "1") == "1"

# Bagi hasil karyawan (persen dari net profit) bei Periodenabschluss
DEFAULT_KARYAWAN_SHARE_PERCENT: float = float(os.environ.get("BOOTH_KARYAWAN_SHARE_PERCENT", "0"))

RECENT_CASHBOOK_LIMIT: int = 50
KARYAWAN_HISTORY_DAYS: int = 30
KARYAWAN_PERIOD_LIMIT: int = 20


def get_nav_items(role: str) -> list[dict]:
    """
    Navigation pro Rolle. Owner sieht alles, Karyawan nur Closing und Riwayat.
    """
    if role == "owner":
        return [
            {"href": "/", "label": "Dashboard"},
            {"href": "/api/booth/history", "label": "Booth"},
            {"href": "/api/kas", "label": "Transaksi"},
            {"href": "/laporan", "label": "Laporan"},
            {"href": "/api/fee", "label": "Fee"},
            {"href": "/api/items", "label": "Item"},
        ]
    return [
        {"href": "/api/booth/today", "label": "Hari Ini"},
        {"href": "/api/karyawan/riwayat", "label": "Riwayat"},
    ]
