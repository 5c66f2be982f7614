"""Prozesslokaler Query-Cache mit expliziter Invalidierung.

Lese-Endpunkte legen fertige (JSON-taugliche) Ergebnisse unter einem
Schluessel ab, dessen erstes Element der Query-Name ist ("dashboard-stats",
"items", ...). Jede schreibende Operation steht in INVALIDATIONS mit den
Queries, die sie veralten laesst, und ruft nach erfolgreichem Commit
invalidate_for() auf.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Callable, Dict, Hashable, Tuple

logger = logging.getLogger("boothfinance.cache")

DASHBOARD = "dashboard-stats"
BOOTH_SESSIONS = "booth-sessions"
CASHBOOK = "cashbook"
REPORT = "report"
PERIOD_CLOSINGS = "period-closings"
FEE_SESSIONS = "fee-sessions"
ITEMS = "items"

INVALIDATIONS: Dict[str, Tuple[str, ...]] = {
    "session.open": (DASHBOARD, BOOTH_SESSIONS),
    "session.close": (DASHBOARD, BOOTH_SESSIONS, CASHBOOK, REPORT, FEE_SESSIONS),
    "cashbook.record": (DASHBOARD, CASHBOOK, REPORT),
    "period.lock": (PERIOD_CLOSINGS,),
    "fee.pay": (FEE_SESSIONS, BOOTH_SESSIONS),
    "item.change": (ITEMS,),
}


class QueryCache:
    def __init__(self) -> None:
        self._data: Dict[Tuple[Hashable, ...], Any] = {}
        self._lock = Lock()
        # Zaehler pro Query-Name, erhoeht bei jeder Invalidierung
        self._generations: Dict[Hashable, int] = {}
        self._epoch = 0

    def get_or_load(self, key: Tuple[Hashable, ...], loader: Callable[[], Any]) -> Any:
        name = key[0]
        with self._lock:
            if key in self._data:
                return self._data[key]
            generation = (self._epoch, self._generations.get(name, 0))
        value = loader()
        with self._lock:
            # waehrend des Ladens invalidiert: Ergebnis nicht ablegen
            if (self._epoch, self._generations.get(name, 0)) == generation:
                self._data[key] = value
        return value

    def __contains__(self, key: Tuple[Hashable, ...]) -> bool:
        return key in self._data

    def invalidate(self, *names: str) -> int:
        """Alle Eintraege entfernen, deren Query-Name in names steht."""
        with self._lock:
            for name in names:
                self._generations[name] = self._generations.get(name, 0) + 1
            stale = [k for k in self._data if k[0] in names]
            for k in stale:
                del self._data[k]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._epoch += 1
            self._data.clear()


query_cache = QueryCache()


def invalidate_for(mutation: str) -> None:
    names = INVALIDATIONS[mutation]
    dropped = query_cache.invalidate(*names)
    logger.debug("cache invalidated after %s: %s (%d entries)", mutation, ", ".join(names), dropped)
