"""Fachliche Fehler der Booth-Services.

Jeder Fehler traegt einen ErrorCode und eine Meldung, die dem Ausloeser
angezeigt werden darf. Router fangen sie nicht ab; main.py bildet sie
zentral auf HTTP-Antworten ab.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Fehlercodes."""

    VALIDATION = "VALIDATION"
    DUPLICATE_SESSION = "DUPLICATE_SESSION"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_STATE = "SESSION_STATE"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    PERIOD_OVERLAP = "PERIOD_OVERLAP"
    EMPTY_PERIOD = "EMPTY_PERIOD"
    BACKEND = "BACKEND"


class BoothError(Exception):
    """Basisfehler mit Code und anzeigbarer Meldung."""

    code: ErrorCode = ErrorCode.VALIDATION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(BoothError):
    """Ungueltige Eingabe (Betrag 0, leere Itemliste, ...)."""

    code = ErrorCode.VALIDATION


class DuplicateSessionError(BoothError):
    """Fuer das Datum gibt es schon eine Booth-Session."""

    code = ErrorCode.DUPLICATE_SESSION

    def __init__(self, date) -> None:
        super().__init__(f"Sesi booth untuk {date.isoformat()} sudah ada")
        self.date = date


class SessionNotFoundError(BoothError):
    code = ErrorCode.SESSION_NOT_FOUND

    def __init__(self, ref) -> None:
        super().__init__("Sesi booth tidak ditemukan")
        self.ref = ref


class SessionStateError(BoothError):
    """Operation passt nicht zum Status der Session."""

    code = ErrorCode.SESSION_STATE


class ItemNotFoundError(BoothError):
    code = ErrorCode.ITEM_NOT_FOUND

    def __init__(self, item_id: int) -> None:
        super().__init__(f"Item {item_id} tidak ditemukan")
        self.item_id = item_id


class OverlapError(BoothError):
    """Periode ueberschneidet eine bereits gesperrte Periode."""

    code = ErrorCode.PERIOD_OVERLAP

    def __init__(self, start, end) -> None:
        super().__init__("Periode sudah dikunci atau overlap dengan periode lain")
        self.start = start
        self.end = end


class EmptyPeriodError(BoothError):
    code = ErrorCode.EMPTY_PERIOD

    def __init__(self, start, end) -> None:
        super().__init__("Tidak ada transaksi di periode ini")
        self.start = start
        self.end = end


class BackendError(BoothError):
    """Persistenzfehler; die Ursache steht in detail."""

    code = ErrorCode.BACKEND

    def __init__(self, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.detail = detail
