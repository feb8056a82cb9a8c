"""
main.py — AI Quiz client entry point

Serves the browser UI on HOST:PORT and opens it once the server answers.
The remote quiz backend is taken from QUIZ_BACKEND_URL.
"""

import logging
import socket
import sys
import threading
import time
import webbrowser

import uvicorn

from api.app import create_app
from config import BACKEND_URL, HOST, LOG_FILE, PORT

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    handlers = [logging.StreamHandler(sys.stdout)]
    try:
        handlers.append(logging.FileHandler(LOG_FILE, encoding="utf-8"))
    except OSError:
        pass  # read-only install dir: console only
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def _pick_port(host: str, port: int) -> int:
    if port:
        return port
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return s.getsockname()[1]


def _open_when_ready(url: str, host: str, port: int, timeout: float = 15.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            with socket.create_connection((host, port), timeout=0.5):
                break
        except OSError:
            time.sleep(0.1)
    else:
        logger.error(f"Server did not answer on {url} within {timeout:.0f}s")
        return
    webbrowser.open(url)


def main() -> None:
    setup_logging()
    port = _pick_port(HOST, PORT)
    url = f"http://{HOST}:{port}"
    logger.info(f"Serving {url} (quiz backend: {BACKEND_URL})")

    threading.Thread(
        target=_open_when_ready, args=(url, HOST, port), daemon=True
    ).start()
    uvicorn.run(create_app(BACKEND_URL), host=HOST, port=port, log_level="warning")


if __name__ == "__main__":
    main()
