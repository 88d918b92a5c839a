"""LandSub launcher: starts the API server and opens the browser."""

from __future__ import annotations

import logging
import socket
import sys
import threading
import time
import webbrowser

import uvicorn

logger = logging.getLogger("landsub.launcher")


def find_free_port() -> int:
    """Find a free TCP port to avoid conflicts."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def open_browser(port: int) -> None:
    """Wait for the server to start, then open the API docs."""
    url = f"http://127.0.0.1:{port}/docs"
    for _ in range(50):
        try:
            with socket.create_connection(("127.0.0.1", port), timeout=0.1):
                break
        except OSError:
            time.sleep(0.1)
    webbrowser.open(url)


def main() -> None:
    port = int(sys.argv[1]) if len(sys.argv) > 1 else find_free_port()
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting LandSub on http://127.0.0.1:%d", port)

    threading.Thread(target=open_browser, args=(port,), daemon=True).start()

    uvicorn.run(
        "landsub.main:app",
        host="127.0.0.1",
        port=port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
