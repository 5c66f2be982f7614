# run_server.py
import logging
import os
import threading
import webbrowser

import uvicorn

logger = logging.getLogger("boothfinance.server")


def _open_browser_later(url: str, delay: float = 0.8) -> None:
    def _go():
        if not webbrowser.open(url):
            logger.warning("kein Browser gefunden, bitte %s manuell oeffnen", url)
    threading.Timer(delay, _go).start()


def main():
    host = os.environ.get("BOOTH_HOST", "127.0.0.1")
    port = int(os.environ.get("BOOTH_PORT", "8000"))

    # Browser nur lokal oeffnen
    if host in ("127.0.0.1", "localhost") and os.environ.get("BOOTH_OPEN_BROWSER", "1") == "1":
        _open_browser_later(f"http://{host}:{port}/")

    uvicorn.run("main:app", host=host, port=port, reload=False, log_level="info")


if __name__ == "__main__":
    main()
