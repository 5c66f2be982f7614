from __future__ import annotations
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

from boothfinance.services.errors import ValidationError

Q2 = Decimal("0.01")
ZERO = Decimal("0")

_BULAN = ("Jan", "Feb", "Mar", "Apr", "Mei", "Jun", "Jul", "Agu", "Sep", "Okt", "Nov", "Des")

def D(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    if x is None or x == "":
        return ZERO
    return Decimal(str(x))

def round2(x: Decimal) -> Decimal:
    return x.quantize(Q2, rounding=ROUND_HALF_UP)

def parse_amount(value, what: str = "Jumlah") -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{what} tidak valid")
    try:
        d = D(value)
    except InvalidOperation:
        raise ValidationError(f"{what} tidak valid")
    # NaN/Infinity: Vergleiche wuerden sonst InvalidOperation werfen
    if not d.is_finite():
        raise ValidationError(f"{what} tidak valid")
    return round2(d)

def format_number(num) -> str:
    """Tausender mit Punkt (id-ID), ohne Nachkommastellen: 1234567 -> '1.234.567'."""
    n = int(D(num).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return f"{n:,}".replace(",", ".")

def format_rupiah(amount) -> str:
    value = D(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}Rp {format_number(abs(value))}"

def parse_rupiah_input(value: str | None) -> int:
    """Alles ausser Ziffern entfernen; leer -> 0."""
    cleaned = re.sub(r"[^\d]", "", value or "")
    return int(cleaned) if cleaned else 0

def format_date(d: date) -> str:
    return f"{d.day} {_BULAN[d.month - 1]} {d.year}"

def to_json_number(x) -> float | int:
    """Geldwerte fuer JSON: ganze Rupiah als int, sonst float."""
    v = round2(D(x))
    return int(v) if v == v.to_integral_value() else float(v)
